"""
RSA-OAEP Envelope Cipher

Public-key encryption of short text messages using RSA with OAEP
padding (MGF1 + SHA-256).

Size ceiling: OAEP consumes 2 * hash_len + 2 bytes of every block, so an
RSA-2048 key can seal at most 256 - 2 * 32 - 2 = 190 bytes of UTF-8
plaintext. Longer messages are rejected with CipherError, never truncated.
"""

import base64
import binascii
from typing import Tuple, Union

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from exceptions import CipherError


PUBLIC_EXPONENT = 65537
DEFAULT_KEY_SIZE = 2048
HASH_SIZE = 32


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def generate_rsa_keypair(key_size: int = DEFAULT_KEY_SIZE) -> Tuple[str, str]:
    """
    Generate an RSA key pair.

    Returns:
        Tuple of (public_key_pem, private_key_pem)
        - public key: SubjectPublicKeyInfo PEM
        - private key: unencrypted PKCS8 PEM
    """
    private_key = rsa.generate_private_key(
        public_exponent=PUBLIC_EXPONENT,
        key_size=key_size,
    )

    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )

    return public_pem.decode("ascii"), private_pem.decode("ascii")


def _load_public_key(public_key: Union[str, bytes]) -> rsa.RSAPublicKey:
    if isinstance(public_key, str):
        public_key = public_key.encode("ascii", errors="replace")
    try:
        key = serialization.load_pem_public_key(public_key)
    except (ValueError, TypeError) as e:
        raise CipherError("Malformed public key") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise CipherError("Public key is not an RSA key")
    return key


def _load_private_key(private_key: Union[str, bytes]) -> rsa.RSAPrivateKey:
    if isinstance(private_key, str):
        private_key = private_key.encode("ascii", errors="replace")
    try:
        key = serialization.load_pem_private_key(private_key, password=None)
    except (ValueError, TypeError) as e:
        raise CipherError("Malformed private key") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CipherError("Private key is not an RSA key")
    return key


def max_plaintext_size(public_key: Union[str, bytes]) -> int:
    """Largest plaintext, in bytes, that can be sealed for this key."""
    key = _load_public_key(public_key)
    return key.key_size // 8 - 2 * HASH_SIZE - 2


def seal(plaintext: str, recipient_public_key: Union[str, bytes]) -> str:
    """
    Encrypt text for the holder of recipient_public_key.

    Args:
        plaintext: Message text (UTF-8 encoded before encryption)
        recipient_public_key: Recipient's PEM public key

    Returns:
        Base64 ciphertext. Randomized padding makes every call distinct.

    Raises:
        CipherError: If the key is malformed or the plaintext exceeds the
            key's payload ceiling
    """
    key = _load_public_key(recipient_public_key)
    data = plaintext.encode("utf-8")

    limit = key.key_size // 8 - 2 * HASH_SIZE - 2
    if len(data) > limit:
        raise CipherError(
            f"Message is {len(data)} bytes; the maximum for this key is {limit} bytes"
        )

    try:
        ciphertext = key.encrypt(data, _oaep())
    except ValueError as e:
        raise CipherError("Encryption failed") from e

    return base64.b64encode(ciphertext).decode("ascii")


def open_sealed(ciphertext: str, recipient_private_key: Union[str, bytes]) -> str:
    """
    Decrypt a ciphertext produced by seal().

    Raises:
        CipherError: On malformed base64, wrong key, padding mismatch or
            a payload that is not valid UTF-8
    """
    key = _load_private_key(recipient_private_key)

    try:
        raw = base64.b64decode(ciphertext, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise CipherError("Ciphertext is not valid base64") from e

    try:
        data = key.decrypt(raw, _oaep())
    except ValueError as e:
        raise CipherError("Decryption failed") from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CipherError("Decrypted payload is not valid UTF-8") from e
