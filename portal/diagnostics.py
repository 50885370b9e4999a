"""
Connectivity probe used by the /test-firestore endpoint.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, Protocol

from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from portal.constants import PROBE_COLLECTION, PROBE_MESSAGE


class ProbeStore(Protocol):
    def write_probe(self) -> dict:
        """Write a probe document and return it as read back, including its id."""
        ...


class InMemoryProbeStore:
    def __init__(self):
        self.documents: Dict[str, dict] = {}

    def write_probe(self) -> dict:
        doc_id = uuid.uuid4().hex
        data = {
            "testData": PROBE_MESSAGE,
            "timestamp": datetime.now(timezone.utc),
        }
        self.documents[doc_id] = data
        return {"id": doc_id, **data}


class FirestoreProbeStore:
    def __init__(self, client, collection: str = PROBE_COLLECTION):
        self.client = client
        self.collection = collection

    def write_probe(self) -> dict:
        _, doc_ref = self.client.collection(self.collection).add(
            {"testData": PROBE_MESSAGE, "timestamp": SERVER_TIMESTAMP}
        )
        snapshot = doc_ref.get()
        return {"id": snapshot.id, **(snapshot.to_dict() or {})}
