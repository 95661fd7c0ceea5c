import logging
from pathlib import Path
from typing import Optional, Union

import aiosqlite

logger = logging.getLogger(__name__)


class Database:
    """
    Owns a single aiosqlite connection.

    Created explicitly at startup and handed to the repositories that
    need it; there is no module-level connection.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = path
        self._connection: Optional[aiosqlite.Connection] = None

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Database not connected")
        return self._connection

    async def connect(self) -> "Database":
        if self._connection is None:
            self._connection = await aiosqlite.connect(self._path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute("PRAGMA journal_mode=WAL")
        return self

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    async def init_schema(self) -> None:
        db = self.connection

        await db.execute("""
            CREATE TABLE IF NOT EXISTS key_pairs (
                user_id INTEGER PRIMARY KEY,
                public_key TEXT NOT NULL,
                private_key TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS messages (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT UNIQUE NOT NULL,
                sender_id INTEGER NOT NULL,
                receiver_id INTEGER NOT NULL,
                ciphertext TEXT NOT NULL,
                attachment_ref TEXT,
                created_at TIMESTAMP NOT NULL,
                is_read BOOLEAN NOT NULL DEFAULT 0
            )
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_inbox
            ON messages (receiver_id, is_read, created_at)
        """)

        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_messages_pair
            ON messages (sender_id, receiver_id, created_at)
        """)

        await db.commit()
        logger.info("Database schema initialized")

    async def __aenter__(self) -> "Database":
        await self.connect()
        await self.init_schema()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
