"""
Contact message storage for Firestore and an in-memory test implementation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Protocol

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from portal.constants import CONTACTS_COLLECTION


@dataclass
class ContactMessage:
    name: str
    email: str
    message: str
    received_at: Any = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "receivedAt": self.received_at,
        }


class ContactStore(Protocol):
    def add_message(self, name: str, email: str, message: str) -> str:
        ...


class InMemoryContactStore:
    """Test double keeping messages in insertion order."""

    def __init__(self):
        self.messages: Dict[str, ContactMessage] = {}

    def add_message(self, name: str, email: str, message: str) -> str:
        message_id = uuid.uuid4().hex
        self.messages[message_id] = ContactMessage(
            name=name, email=email, message=message
        )
        return message_id


class FirestoreContactStore:
    def __init__(self, client, collection: str = CONTACTS_COLLECTION):
        self.client = client
        self.collection = collection

    def add_message(self, name: str, email: str, message: str) -> str:
        record = ContactMessage(
            name=name, email=email, message=message, received_at=SERVER_TIMESTAMP
        )
        _, doc_ref = self.client.collection(self.collection).add(record.as_dict())
        return doc_ref.id
