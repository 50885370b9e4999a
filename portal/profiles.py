"""
Profile store abstraction for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from portal.constants import USERS_COLLECTION


@dataclass
class ProfileRecord:
    account_id: str
    username: str
    is_admin: bool = False
    created_at: Optional[Any] = None
    last_login: Optional[Any] = None

    @classmethod
    def from_document(cls, account_id: str, data: dict) -> "ProfileRecord":
        return cls(
            account_id=account_id,
            username=data.get("username", ""),
            is_admin=bool(data.get("isAdmin", False)),
            created_at=data.get("createdAt"),
            last_login=data.get("lastLogin"),
        )


class ProfileStore(Protocol):
    """Interface for per-account profile records."""

    def create_profile(self, account_id: str, username: str) -> None:
        ...

    def get_profile(self, account_id: str) -> Optional[ProfileRecord]:
        ...

    def touch_last_login(self, account_id: str) -> None:
        ...

    def set_admin(self, account_id: str, is_admin: bool) -> None:
        ...

    def delete_profile(self, account_id: str) -> None:
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryProfileStore:
    """Simple in-memory profile store for development and tests."""

    def __init__(self):
        self.profiles: Dict[str, ProfileRecord] = {}

    def create_profile(self, account_id: str, username: str) -> None:
        self.profiles[account_id] = ProfileRecord(
            account_id=account_id,
            username=username,
            is_admin=False,
            created_at=_now(),
            last_login=None,
        )

    def get_profile(self, account_id: str) -> Optional[ProfileRecord]:
        record = self.profiles.get(account_id)
        if record is None:
            return None
        # Hand out a copy so callers cannot mutate stored state.
        return ProfileRecord(**vars(record))

    def touch_last_login(self, account_id: str) -> None:
        record = self.profiles.get(account_id)
        if record is None:
            raise KeyError(account_id)
        record.last_login = _now()

    def set_admin(self, account_id: str, is_admin: bool) -> None:
        record = self.profiles.get(account_id)
        if record is None:
            raise KeyError(account_id)
        record.is_admin = is_admin

    def delete_profile(self, account_id: str) -> None:
        self.profiles.pop(account_id, None)


class FirestoreProfileStore:
    """Firestore-backed profiles in the ``users`` collection."""

    def __init__(self, client, collection: str = USERS_COLLECTION):
        self.client = client
        self.collection = collection

    def _doc(self, account_id: str):
        return self.client.collection(self.collection).document(account_id)

    def create_profile(self, account_id: str, username: str) -> None:
        self._doc(account_id).set(
            {
                "username": username,
                "isAdmin": False,
                "createdAt": SERVER_TIMESTAMP,
                "lastLogin": None,
            }
        )

    def get_profile(self, account_id: str) -> Optional[ProfileRecord]:
        snapshot = self._doc(account_id).get()
        if not snapshot.exists:
            return None
        return ProfileRecord.from_document(account_id, snapshot.to_dict() or {})

    def touch_last_login(self, account_id: str) -> None:
        self._doc(account_id).update({"lastLogin": SERVER_TIMESTAMP})

    def set_admin(self, account_id: str, is_admin: bool) -> None:
        self._doc(account_id).update({"isAdmin": is_admin})

    def delete_profile(self, account_id: str) -> None:
        self._doc(account_id).delete()
