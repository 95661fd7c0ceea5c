from .base import KeyRepository, MessageLedger
from .database import Database
from .memory_store import MemoryKeyRepository, MemoryMessageLedger
from .models import KeyPair, MessageEnvelope
from .sqlite_store import SQLiteKeyRepository, SQLiteMessageLedger

__all__ = [
    "Database",
    "KeyPair",
    "MessageEnvelope",
    "KeyRepository",
    "MessageLedger",
    "SQLiteKeyRepository",
    "SQLiteMessageLedger",
    "MemoryKeyRepository",
    "MemoryMessageLedger",
]
