"""
Firebase Admin SDK initialisation.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from portal.config import Settings

logger = logging.getLogger(__name__)

_firebase_app: firebase_admin.App | None = None


def get_firebase_app(settings: Settings) -> firebase_admin.App:
    """
    Return the process-wide Firebase app, initialising it from the service
    account bundle on first use.
    """
    global _firebase_app
    if _firebase_app:
        return _firebase_app

    settings.validate_for_startup()
    cert = credentials.Certificate(settings.service_account_info())
    _firebase_app = firebase_admin.initialize_app(
        cert, {"databaseURL": settings.database_url}
    )
    logger.info(
        "Initialised Firebase app for project %s", settings.firebase_project_id
    )
    return _firebase_app


def get_firestore_client(settings: Settings):
    return firestore.client(app=get_firebase_app(settings))
