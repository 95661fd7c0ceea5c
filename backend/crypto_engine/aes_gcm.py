"""
AES-256-GCM Key Wrapping

Protects private keys at rest. Each wrapped value is a single blob of
nonce (12) + ciphertext + tag (16), carried as base64 text so it fits a
TEXT column.

GCM provides:
- Confidentiality (encryption)
- Integrity (authentication tag)
- Authentication (AEAD)
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from exceptions import CipherError


NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32


def aes_encrypt_combined(
    plaintext: bytes,
    key: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """
    Encrypt and return combined output (nonce + ciphertext + tag).

    Args:
        plaintext: Data to encrypt
        key: 256-bit encryption key
        associated_data: Optional AAD

    Returns:
        Combined bytes: nonce (12) + ciphertext + tag (16)
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")

    nonce = os.urandom(NONCE_SIZE)
    aesgcm = AESGCM(key)
    ciphertext_with_tag = aesgcm.encrypt(nonce, plaintext, associated_data)

    return nonce + ciphertext_with_tag


def aes_decrypt_combined(
    combined: bytes,
    key: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """
    Decrypt combined output (nonce + ciphertext + tag).

    Raises:
        ValueError: If the blob is too short or the key has the wrong size
        cryptography.exceptions.InvalidTag: If authentication fails
    """
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")

    if len(combined) < NONCE_SIZE + TAG_SIZE:
        raise ValueError("Combined data too short")

    nonce = combined[:NONCE_SIZE]
    ciphertext_with_tag = combined[NONCE_SIZE:]

    aesgcm = AESGCM(key)
    return aesgcm.decrypt(nonce, ciphertext_with_tag, associated_data)


def wrap_secret(secret: str, key: bytes, associated_data: bytes = b"") -> str:
    """Encrypt a text secret and return it as base64."""
    combined = aes_encrypt_combined(secret.encode("utf-8"), key, associated_data)
    return base64.b64encode(combined).decode("ascii")


def unwrap_secret(wrapped: str, key: bytes, associated_data: bytes = b"") -> str:
    """
    Reverse wrap_secret().

    Raises:
        CipherError: If the blob is malformed, was wrapped under another
            key, or was bound to different associated data
    """
    try:
        combined = base64.b64decode(wrapped, validate=True)
        plaintext = aes_decrypt_combined(combined, key, associated_data)
    except (binascii.Error, ValueError, InvalidTag) as e:
        raise CipherError("Stored private key could not be unwrapped") from e

    return plaintext.decode("utf-8")
