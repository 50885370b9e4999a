"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends

from portal.config import Settings, get_settings
from portal.contacts import ContactStore, FirestoreContactStore, InMemoryContactStore
from portal.diagnostics import FirestoreProbeStore, InMemoryProbeStore, ProbeStore
from portal.firebase import get_firebase_app, get_firestore_client
from portal.identity import (
    FirebaseIdentityProvider,
    IdentityProvider,
    InMemoryIdentityProvider,
)
from portal.profiles import FirestoreProfileStore, InMemoryProfileStore, ProfileStore
from portal.service import AccountService
from portal.sessions import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionCookieSigner,
    SessionStore,
)

logger = logging.getLogger(__name__)

_identity_provider: IdentityProvider | None = None
_profile_store: ProfileStore | None = None
_contact_store: ContactStore | None = None
_probe_store: ProbeStore | None = None
_session_store: SessionStore | None = None
_cookie_signer: SessionCookieSigner | None = None


def get_identity_provider(settings: Settings = Depends(get_settings)) -> IdentityProvider:
    global _identity_provider
    if _identity_provider:
        return _identity_provider

    if settings.use_in_memory_backends:
        _identity_provider = InMemoryIdentityProvider()
    else:
        _identity_provider = FirebaseIdentityProvider(
            get_firebase_app(settings), web_api_key=settings.firebase_web_api_key
        )
    return _identity_provider


def get_profile_store(settings: Settings = Depends(get_settings)) -> ProfileStore:
    global _profile_store
    if _profile_store:
        return _profile_store

    if settings.use_in_memory_backends:
        _profile_store = InMemoryProfileStore()
    else:
        _profile_store = FirestoreProfileStore(get_firestore_client(settings))
    return _profile_store


def get_contact_store(settings: Settings = Depends(get_settings)) -> ContactStore:
    global _contact_store
    if _contact_store:
        return _contact_store

    if settings.use_in_memory_backends:
        _contact_store = InMemoryContactStore()
    else:
        _contact_store = FirestoreContactStore(get_firestore_client(settings))
    return _contact_store


def get_probe_store(settings: Settings = Depends(get_settings)) -> ProbeStore:
    global _probe_store
    if _probe_store:
        return _probe_store

    if settings.use_in_memory_backends:
        _probe_store = InMemoryProbeStore()
    else:
        _probe_store = FirestoreProbeStore(get_firestore_client(settings))
    return _probe_store


def get_session_store(settings: Settings = Depends(get_settings)) -> SessionStore:
    """
    Return a singleton session store. Redis is used whenever REDIS_URL is
    set, so sessions survive restarts and are shared between workers.
    """
    global _session_store
    if _session_store:
        return _session_store

    if settings.redis_url:
        _session_store = RedisSessionStore(
            url=settings.redis_url,
            ttl_seconds=settings.session_ttl_seconds,
            key_prefix=settings.session_key_prefix,
        )
    else:
        _session_store = InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)
    return _session_store


def get_cookie_signer(settings: Settings = Depends(get_settings)) -> SessionCookieSigner:
    global _cookie_signer
    if _cookie_signer:
        return _cookie_signer

    secret = settings.session_secret
    if not secret:
        logger.warning(
            "SESSION_SECRET is not set; using a random per-process secret. "
            "Sessions will not survive a restart."
        )
        secret = secrets.token_urlsafe(32)
    _cookie_signer = SessionCookieSigner(secret)
    return _cookie_signer


def get_account_service(
    settings: Settings = Depends(get_settings),
    identity: IdentityProvider = Depends(get_identity_provider),
    profiles: ProfileStore = Depends(get_profile_store),
    sessions: SessionStore = Depends(get_session_store),
    contacts: ContactStore = Depends(get_contact_store),
    probes: ProbeStore = Depends(get_probe_store),
) -> AccountService:
    return AccountService(
        identity,
        profiles,
        sessions,
        contacts,
        probes,
        identifier_domain=settings.identifier_domain,
        legacy_password_reset_login=settings.legacy_password_reset_login,
    )


def reset_dependencies() -> None:
    """Drop cached clients so the next request rebuilds them (used in tests)."""
    global _identity_provider, _profile_store, _contact_store
    global _probe_store, _session_store, _cookie_signer
    _identity_provider = None
    _profile_store = None
    _contact_store = None
    _probe_store = None
    _session_store = None
    _cookie_signer = None
