"""
Session store abstraction.

Supports an in-memory TTL cache for tests/local runs and a Redis-backed
implementation for production. Tokens are opaque; the cookie carries the
token signed with the session secret.
"""

from __future__ import annotations

import json
import secrets
from dataclasses import asdict, dataclass, field
from typing import Optional, Protocol

import redis
from cachetools import TTLCache
from dacite import from_dict
from itsdangerous import BadSignature, Signer
from redis import exceptions as redis_exceptions

from portal.errors import SessionStoreError


@dataclass
class SessionRecord:
    account_id: str
    is_admin: bool = False


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(Protocol):
    """Minimal session interface: create, resolve and destroy by token."""

    def create(self, record: SessionRecord) -> str:
        ...

    def get(self, token: str) -> Optional[SessionRecord]:
        ...

    def destroy(self, token: str) -> None:
        ...


@dataclass
class InMemorySessionStore:
    """Process-local sessions that expire after ``ttl_seconds``."""

    ttl_seconds: int = 86400
    max_sessions: int = 10000
    sessions: TTLCache = field(init=False)

    def __post_init__(self):
        self.sessions = TTLCache(maxsize=self.max_sessions, ttl=self.ttl_seconds)

    def create(self, record: SessionRecord) -> str:
        token = new_session_token()
        self.sessions[token] = SessionRecord(**asdict(record))
        return token

    def get(self, token: str) -> Optional[SessionRecord]:
        record = self.sessions.get(token)
        if record is None:
            return None
        return SessionRecord(**asdict(record))

    def destroy(self, token: str) -> None:
        self.sessions.pop(token, None)


@dataclass
class RedisSessionStore:
    """Redis-backed sessions stored as JSON with a per-key expiry."""

    url: str
    ttl_seconds: int = 86400
    key_prefix: str = "portal:session:"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def _reconnect(self) -> None:
        # Managed Redis drops idle connections; rebuild the client so the
        # next request gets a fresh pool.
        self.client = redis.Redis.from_url(self.url)

    def create(self, record: SessionRecord) -> str:
        token = new_session_token()
        payload = json.dumps(asdict(record))
        try:
            self.client.set(self._key(token), payload, ex=self.ttl_seconds)
        except redis_exceptions.ConnectionError as e:
            self._reconnect()
            raise SessionStoreError("session store unavailable") from e
        except redis_exceptions.RedisError as e:
            raise SessionStoreError(str(e)) from e
        return token

    def get(self, token: str) -> Optional[SessionRecord]:
        try:
            raw = self.client.get(self._key(token))
        except redis_exceptions.ConnectionError as e:
            self._reconnect()
            raise SessionStoreError("session store unavailable") from e
        except redis_exceptions.RedisError as e:
            raise SessionStoreError(str(e)) from e
        if raw is None:
            return None
        return from_dict(data_class=SessionRecord, data=json.loads(raw))

    def destroy(self, token: str) -> None:
        try:
            self.client.delete(self._key(token))
        except redis_exceptions.ConnectionError as e:
            self._reconnect()
            raise SessionStoreError("session store unavailable") from e
        except redis_exceptions.RedisError as e:
            raise SessionStoreError(str(e)) from e


class SessionCookieSigner:
    """Signs session tokens for the cookie and rejects tampered values."""

    def __init__(self, secret: str):
        self._signer = Signer(secret, salt="portal-session")

    def sign(self, token: str) -> str:
        return self._signer.sign(token).decode("utf-8")

    def unsign(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            return self._signer.unsign(value).decode("utf-8")
        except BadSignature:
            return None
