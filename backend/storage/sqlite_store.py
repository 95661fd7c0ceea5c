"""
SQLite-backed Key Repository and Message Ledger
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

import aiosqlite

from exceptions import AuthorizationError, NotFoundError

from .base import KeyRepository, MessageLedger
from .database import Database
from .models import KeyPair, MessageEnvelope

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_envelope(row: aiosqlite.Row) -> MessageEnvelope:
    return MessageEnvelope(
        id=row["id"],
        sender_id=row["sender_id"],
        receiver_id=row["receiver_id"],
        ciphertext=row["ciphertext"],
        created_at=datetime.fromisoformat(row["created_at"]),
        is_read=bool(row["is_read"]),
        attachment_ref=row["attachment_ref"],
    )


class SQLiteKeyRepository(KeyRepository):

    def __init__(self, database: Database):
        self._db = database

    async def upsert(self, user_id: int, public_key: str, private_key: str) -> KeyPair:
        db = self._db.connection
        now = _now().isoformat(timespec="microseconds")

        await db.execute("""
            INSERT INTO key_pairs (user_id, public_key, private_key, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                public_key = excluded.public_key,
                private_key = excluded.private_key,
                updated_at = excluded.updated_at
        """, (user_id, public_key, private_key, now, now))

        await db.commit()
        logger.info("Stored key pair for user %d", user_id)

        return await self.get(user_id)

    async def get(self, user_id: int) -> Optional[KeyPair]:
        cursor = await self._db.connection.execute(
            "SELECT * FROM key_pairs WHERE user_id = ?",
            (user_id,)
        )
        row = await cursor.fetchone()

        if row:
            return KeyPair(
                user_id=row["user_id"],
                public_key=row["public_key"],
                private_key=row["private_key"],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        return None


class SQLiteMessageLedger(MessageLedger):

    def __init__(self, database: Database):
        self._db = database

    async def append(
        self,
        sender_id: int,
        receiver_id: int,
        ciphertext: str,
        attachment_ref: Optional[str] = None,
    ) -> str:
        db = self._db.connection
        envelope_id = uuid4().hex
        created_at = _now().isoformat(timespec="microseconds")

        # created_at is clamped to the newest stored value so it never decreases
        await db.execute("""
            INSERT INTO messages (id, sender_id, receiver_id, ciphertext, attachment_ref, created_at, is_read)
            SELECT ?, ?, ?, ?, ?, MAX(?, COALESCE((SELECT MAX(created_at) FROM messages), '')), 0
        """, (envelope_id, sender_id, receiver_id, ciphertext, attachment_ref, created_at))

        await db.commit()
        logger.debug("Appended message %s (%d -> %d)", envelope_id, sender_id, receiver_id)
        return envelope_id

    async def get(self, envelope_id: str) -> Optional[MessageEnvelope]:
        cursor = await self._db.connection.execute(
            "SELECT * FROM messages WHERE id = ?",
            (envelope_id,)
        )
        row = await cursor.fetchone()
        return _row_to_envelope(row) if row else None

    async def list_unread(self, user_id: int) -> List[MessageEnvelope]:
        cursor = await self._db.connection.execute("""
            SELECT * FROM messages
            WHERE receiver_id = ? AND is_read = 0
            ORDER BY seq ASC
        """, (user_id,))
        rows = await cursor.fetchall()
        return [_row_to_envelope(row) for row in rows]

    async def list_between(self, user_a: int, user_b: int) -> List[MessageEnvelope]:
        cursor = await self._db.connection.execute("""
            SELECT * FROM messages
            WHERE (sender_id = ? AND receiver_id = ?)
               OR (sender_id = ? AND receiver_id = ?)
            ORDER BY seq ASC
        """, (user_a, user_b, user_b, user_a))
        rows = await cursor.fetchall()
        return [_row_to_envelope(row) for row in rows]

    async def mark_read(self, envelope_id: str, requesting_user_id: int) -> MessageEnvelope:
        envelope = await self.get(envelope_id)
        if envelope is None:
            raise NotFoundError(envelope_id)

        if envelope.receiver_id != requesting_user_id:
            logger.warning(
                "User %d attempted to mark message %s owned by another user",
                requesting_user_id, envelope_id,
            )
            raise AuthorizationError("Not authorized to modify this message")

        if not envelope.is_read:
            db = self._db.connection
            await db.execute(
                "UPDATE messages SET is_read = 1 WHERE id = ?",
                (envelope_id,)
            )
            await db.commit()
            envelope.is_read = True

        return envelope

    async def mark_read_many(self, user_id: int, envelope_ids: List[str]) -> int:
        if not envelope_ids:
            return 0

        db = self._db.connection
        placeholders = ", ".join("?" for _ in envelope_ids)
        cursor = await db.execute(
            f"UPDATE messages SET is_read = 1 "
            f"WHERE receiver_id = ? AND is_read = 0 AND id IN ({placeholders})",
            (user_id, *envelope_ids)
        )
        await db.commit()
        return cursor.rowcount

    async def mark_all_unread_as_read(self, user_id: int) -> int:
        db = self._db.connection
        cursor = await db.execute(
            "UPDATE messages SET is_read = 1 WHERE receiver_id = ? AND is_read = 0",
            (user_id,)
        )
        await db.commit()
        return cursor.rowcount
