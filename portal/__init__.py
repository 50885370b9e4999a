"""
Account portal backend.

A FastAPI service that fronts Firebase Authentication and Cloud Firestore
for user registration, session-backed login, and a contact form.
"""
