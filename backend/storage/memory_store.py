"""
In-Memory Key Repository and Message Ledger

Process-local stores for development and tests. Each operation runs
under one lock, which stands in for the single-statement atomicity of
the SQLite store. Callers always receive copies, never live records.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from exceptions import AuthorizationError, NotFoundError

from .base import KeyRepository, MessageLedger
from .models import KeyPair, MessageEnvelope


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryKeyRepository(KeyRepository):
    """Thread-safe in-memory key pair storage."""

    def __init__(self):
        self._store: Dict[int, KeyPair] = {}
        self._lock = threading.RLock()

    async def upsert(self, user_id: int, public_key: str, private_key: str) -> KeyPair:
        now = _now()
        with self._lock:
            existing = self._store.get(user_id)
            entry = KeyPair(
                user_id=user_id,
                public_key=public_key,
                private_key=private_key,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._store[user_id] = entry
            return replace(entry)

    async def get(self, user_id: int) -> Optional[KeyPair]:
        with self._lock:
            entry = self._store.get(user_id)
            return replace(entry) if entry else None


class MemoryMessageLedger(MessageLedger):
    """Thread-safe in-memory message ledger."""

    def __init__(self):
        self._envelopes: Dict[str, Tuple[int, MessageEnvelope]] = {}
        self._seq = 0
        self._last_created_at: Optional[datetime] = None
        self._lock = threading.RLock()

    def _ordered(self, predicate) -> List[MessageEnvelope]:
        with self._lock:
            matches = [
                (seq, envelope)
                for seq, envelope in self._envelopes.values()
                if predicate(envelope)
            ]
        matches.sort(key=lambda item: item[0])
        return [replace(envelope) for _, envelope in matches]

    async def append(
        self,
        sender_id: int,
        receiver_id: int,
        ciphertext: str,
        attachment_ref: Optional[str] = None,
    ) -> str:
        envelope_id = uuid4().hex
        with self._lock:
            created_at = _now()
            if self._last_created_at and created_at < self._last_created_at:
                created_at = self._last_created_at
            self._last_created_at = created_at
            self._seq += 1
            self._envelopes[envelope_id] = (
                self._seq,
                MessageEnvelope(
                    id=envelope_id,
                    sender_id=sender_id,
                    receiver_id=receiver_id,
                    ciphertext=ciphertext,
                    created_at=created_at,
                    attachment_ref=attachment_ref,
                ),
            )
        return envelope_id

    async def get(self, envelope_id: str) -> Optional[MessageEnvelope]:
        with self._lock:
            entry = self._envelopes.get(envelope_id)
            return replace(entry[1]) if entry else None

    async def list_unread(self, user_id: int) -> List[MessageEnvelope]:
        return self._ordered(
            lambda e: e.receiver_id == user_id and not e.is_read
        )

    async def list_between(self, user_a: int, user_b: int) -> List[MessageEnvelope]:
        return self._ordered(
            lambda e: (e.sender_id, e.receiver_id) in ((user_a, user_b), (user_b, user_a))
        )

    async def mark_read(self, envelope_id: str, requesting_user_id: int) -> MessageEnvelope:
        with self._lock:
            entry = self._envelopes.get(envelope_id)
            if entry is None:
                raise NotFoundError(envelope_id)

            envelope = entry[1]
            if envelope.receiver_id != requesting_user_id:
                raise AuthorizationError("Not authorized to modify this message")

            envelope.is_read = True
            return replace(envelope)

    async def mark_all_unread_as_read(self, user_id: int) -> int:
        count = 0
        with self._lock:
            for _, envelope in self._envelopes.values():
                if envelope.receiver_id == user_id and not envelope.is_read:
                    envelope.is_read = True
                    count += 1
        return count

    async def mark_read_many(self, user_id: int, envelope_ids: List[str]) -> int:
        count = 0
        with self._lock:
            for envelope_id in envelope_ids:
                entry = self._envelopes.get(envelope_id)
                if entry is None:
                    continue
                envelope = entry[1]
                if envelope.receiver_id == user_id and not envelope.is_read:
                    envelope.is_read = True
                    count += 1
        return count
