"""
Key Derivation Functions

Provides HKDF-based key derivation for creating the key-wrapping key
from the configured master secret.
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


WRAPPING_KEY_CONTEXT = b"cipherchat-private-key-wrap-v1"


def derive_key(
    input_key_material: bytes,
    context: bytes,
    length: int,
    salt: bytes = b"",
) -> bytes:
    """
    Derive a cryptographic key using HKDF-SHA256.

    Args:
        input_key_material: The source key material
        context: Application-specific context string (info parameter)
        length: Desired output key length in bytes
        salt: Optional salt value

    Returns:
        Derived key of the specified length
    """
    if not input_key_material:
        raise ValueError("Input key material cannot be empty")

    if length <= 0 or length > 255 * 32:
        raise ValueError(f"Invalid key length: {length}")

    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt if salt else None,
        info=context,
    )

    return hkdf.derive(input_key_material)


def derive_wrapping_key(master_secret: str) -> bytes:
    """Derive the 256-bit AES key used to wrap private keys at rest."""
    return derive_key(master_secret.encode("utf-8"), WRAPPING_KEY_CONTEXT, 32)
