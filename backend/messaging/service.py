"""
Messaging Service

Orchestrates the key store, the envelope cipher and the message ledger.

Envelope state machine: Unread -> Read (terminal).

Delivery is at-least-once: drain_inbox decrypts the whole batch before
marking it read, so a failure between the two steps leaves the batch
unread and the next drain returns it again. Only the envelopes in the
batch are marked; mail that arrives mid-drain stays unread.
"""

import logging
from typing import List, Optional

from crypto_engine import open_sealed, seal
from exceptions import CipherError, validate_user_id
from key_store import KeyStore
from storage.base import MessageLedger
from storage.models import MessageEnvelope

from .results import OUTGOING, Decrypted, Failed, MessageView

logger = logging.getLogger(__name__)


class MessagingService:

    def __init__(self, key_store: KeyStore, ledger: MessageLedger):
        self._keys = key_store
        self._ledger = ledger

    @property
    def ledger(self) -> MessageLedger:
        return self._ledger

    async def generate_keys(self, user_id: int) -> str:
        return await self._keys.generate_and_store_keys(user_id)

    async def get_public_key(self, user_id: int) -> str:
        return await self._keys.get_public_key(user_id)

    async def send(
        self,
        sender_id: int,
        receiver_id: int,
        plaintext: str,
        attachment_ref: Optional[str] = None,
    ) -> str:
        """
        Seal plaintext for receiver_id and append it to the ledger.

        Returns:
            The new envelope id

        Raises:
            IdentityError: If either user id is invalid
            KeyNotFoundError: If the receiver has no key pair
            CipherError: If the plaintext exceeds the cipher's ceiling
        """
        validate_user_id(sender_id)
        validate_user_id(receiver_id)

        public_key = await self._keys.get_public_key(receiver_id)
        ciphertext = seal(plaintext, public_key)

        envelope_id = await self._ledger.append(
            sender_id, receiver_id, ciphertext, attachment_ref
        )
        logger.info("User %d sent message %s to user %d", sender_id, envelope_id, receiver_id)
        return envelope_id

    def _open(self, envelope: MessageEnvelope, private_key: str) -> MessageView:
        try:
            plaintext = open_sealed(envelope.ciphertext, private_key)
        except CipherError as e:
            logger.warning("Could not decrypt message %s: %s", envelope.id, e.message)
            return MessageView(envelope, Failed(e.message))
        return MessageView(envelope, Decrypted(plaintext))

    async def peek_unread(self, user_id: int) -> List[MessageView]:
        """Decrypt unread messages without changing their read state."""
        private_key = await self._keys.get_private_key(user_id, on_behalf_of=user_id)
        envelopes = await self._ledger.list_unread(user_id)
        return [self._open(envelope, private_key) for envelope in envelopes]

    async def drain_inbox(self, user_id: int) -> List[MessageView]:
        """
        Decrypt every unread message for user_id, then mark exactly that
        batch read.

        A per-message CipherError becomes a Failed result for that message
        only. A second drain with no new mail returns an empty list.

        Raises:
            KeyNotFoundError: If user_id has no key pair; the ledger is not read
        """
        views = await self.peek_unread(user_id)

        marked = await self._ledger.mark_read_many(
            user_id, [view.envelope.id for view in views]
        )
        for view in views:
            view.envelope.is_read = True

        failures = sum(1 for view in views if not view.ok)
        logger.info(
            "Drained %d messages for user %d (%d marked read, %d failed)",
            len(views), user_id, marked, failures,
        )
        return views

    async def history(self, user_id: int, other_user_id: int) -> List[MessageView]:
        """
        Conversation between user_id and other_user_id, oldest first.

        Incoming messages are decrypted with user_id's key. Outgoing ones are
        reported as OUTGOING since the sender holds no copy of the plaintext.
        Read state is not changed.
        """
        validate_user_id(other_user_id)
        private_key = await self._keys.get_private_key(user_id, on_behalf_of=user_id)

        views = []
        for envelope in await self._ledger.list_between(user_id, other_user_id):
            if envelope.receiver_id == user_id:
                views.append(self._open(envelope, private_key))
            else:
                views.append(MessageView(envelope, OUTGOING))
        return views

    async def mark_read(self, envelope_id: str, requesting_user_id: int) -> MessageEnvelope:
        validate_user_id(requesting_user_id)
        envelope = await self._ledger.mark_read(envelope_id, requesting_user_id)
        logger.info("User %d marked message %s read", requesting_user_id, envelope_id)
        return envelope

    async def encrypt_for(self, receiver_id: int, plaintext: str) -> str:
        """Seal plaintext for receiver_id without storing it."""
        validate_user_id(receiver_id)
        public_key = await self._keys.get_public_key(receiver_id)
        return seal(plaintext, public_key)

    async def decrypt_own(self, user_id: int, ciphertext: str) -> str:
        """Open a ciphertext with user_id's own private key."""
        private_key = await self._keys.get_private_key(user_id, on_behalf_of=user_id)
        return open_sealed(ciphertext, private_key)
