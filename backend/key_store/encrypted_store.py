"""
Encrypted Key Store

One RSA key pair per user. Public keys are stored as PEM; private keys
are wrapped with AES-256-GCM before they reach the repository, with the
owner's user id bound in as associated data so a wrapped key copied onto
another user's row will not unwrap.
"""

import asyncio
import logging

from crypto_engine import (
    DEFAULT_KEY_SIZE,
    generate_rsa_keypair,
    unwrap_secret,
    wrap_secret,
)
from exceptions import AuthorizationError, KeyNotFoundError, validate_user_id
from storage.base import KeyRepository
from storage.models import KeyPair

logger = logging.getLogger(__name__)


def _owner_binding(user_id: int) -> bytes:
    return f"cipherchat:user:{user_id}".encode("ascii")


class KeyStore:
    """
    Key provisioning and lookup.

    Features:
    - Create-or-replace generation (last writer wins)
    - Private keys wrapped at rest, unwrapped only for their owner
    - RSA generation runs off the event loop
    """

    def __init__(
        self,
        repository: KeyRepository,
        wrapping_key: bytes,
        key_size: int = DEFAULT_KEY_SIZE,
    ):
        self._repository = repository
        self._wrapping_key = wrapping_key
        self._key_size = key_size

    async def generate_and_store_keys(self, user_id: int) -> str:
        """
        Generate a fresh key pair for user_id, replacing any prior pair.

        Returns:
            The new public key (PEM). The private half never leaves the store.

        Raises:
            IdentityError: If user_id is not a valid user id
        """
        validate_user_id(user_id)

        public_key, private_key = await asyncio.to_thread(
            generate_rsa_keypair, self._key_size
        )
        wrapped = wrap_secret(private_key, self._wrapping_key, _owner_binding(user_id))

        await self._repository.upsert(user_id, public_key, wrapped)
        logger.info("Generated %d-bit key pair for user %d", self._key_size, user_id)

        return public_key

    async def _require(self, user_id: int) -> KeyPair:
        validate_user_id(user_id)
        key_pair = await self._repository.get(user_id)
        if key_pair is None:
            raise KeyNotFoundError(user_id)
        return key_pair

    async def get_public_key(self, user_id: int) -> str:
        key_pair = await self._require(user_id)
        return key_pair.public_key

    async def get_private_key(
        self,
        user_id: int,
        *,
        on_behalf_of: int,
    ) -> str:
        """
        Return the unwrapped private key for user_id.

        Args:
            user_id: Owner of the key
            on_behalf_of: Identity of the caller; must equal user_id

        Raises:
            AuthorizationError: If on_behalf_of is another user
            KeyNotFoundError: If user_id has no key pair
            CipherError: If the stored key cannot be unwrapped
        """
        if on_behalf_of != user_id:
            logger.warning(
                "User %s requested the private key of user %s", on_behalf_of, user_id
            )
            raise AuthorizationError("Private keys are only available to their owner")

        key_pair = await self._require(user_id)
        return unwrap_secret(key_pair.private_key, self._wrapping_key, _owner_binding(user_id))

    async def has_keys(self, user_id: int) -> bool:
        validate_user_id(user_id)
        return await self._repository.get(user_id) is not None
