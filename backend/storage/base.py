"""
Storage Interfaces

Narrow contracts for the two durable stores the messaging core depends on.
Implementations must rely on the backing store's single-statement
atomicity; no application-level locking is assumed by callers.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import KeyPair, MessageEnvelope


class KeyRepository(ABC):
    """Key pairs addressable by unique user id."""

    @abstractmethod
    async def upsert(self, user_id: int, public_key: str, private_key: str) -> KeyPair:
        """Create or replace both halves of the user's key pair atomically."""
        pass

    @abstractmethod
    async def get(self, user_id: int) -> Optional[KeyPair]:
        pass


class MessageLedger(ABC):
    """
    Append-only store of message envelopes.

    Listings are in insertion order. created_at never decreases along that
    order, so this is also created_at ascending.
    """

    @abstractmethod
    async def append(
        self,
        sender_id: int,
        receiver_id: int,
        ciphertext: str,
        attachment_ref: Optional[str] = None,
    ) -> str:
        """Insert a new unread envelope and return its id."""
        pass

    @abstractmethod
    async def get(self, envelope_id: str) -> Optional[MessageEnvelope]:
        pass

    @abstractmethod
    async def list_unread(self, user_id: int) -> List[MessageEnvelope]:
        pass

    @abstractmethod
    async def list_between(self, user_a: int, user_b: int) -> List[MessageEnvelope]:
        pass

    @abstractmethod
    async def mark_read(self, envelope_id: str, requesting_user_id: int) -> MessageEnvelope:
        """
        Mark one envelope read on behalf of its receiver.

        Raises:
            NotFoundError: If no such envelope exists
            AuthorizationError: If requesting_user_id is not the receiver
        """
        pass

    @abstractmethod
    async def mark_read_many(self, user_id: int, envelope_ids: List[str]) -> int:
        """
        Mark the given envelopes read, restricted to those addressed to
        user_id, in one atomic update. Returns the number newly marked.
        """
        pass

    @abstractmethod
    async def mark_all_unread_as_read(self, user_id: int) -> int:
        """Mark every unread envelope addressed to user_id. Returns the count."""
        pass
