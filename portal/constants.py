"""
Firestore collection names used by the portal.
"""

USERS_COLLECTION = "users"
CONTACTS_COLLECTION = "contacts"
PROBE_COLLECTION = "test"

PROBE_MESSAGE = "Firestore connection successful"
