"""
Crypto Engine Package

Envelope cipher (RSA-OAEP/SHA-256) for messages and AES-256-GCM
wrapping for private keys at rest. Pure functions, no shared state.
"""

from .aes_gcm import unwrap_secret, wrap_secret
from .key_derivation import derive_wrapping_key
from .rsa_oaep import (
    DEFAULT_KEY_SIZE,
    generate_rsa_keypair,
    max_plaintext_size,
    open_sealed,
    seal,
)

__all__ = [
    "DEFAULT_KEY_SIZE",
    "generate_rsa_keypair",
    "max_plaintext_size",
    "seal",
    "open_sealed",
    "wrap_secret",
    "unwrap_secret",
    "derive_wrapping_key",
]
