"""
Key Store Package

Holds each user's RSA key pair. Private keys are encrypted at rest and
only unwrapped on behalf of their owner.
"""

from .encrypted_store import KeyStore

__all__ = [
    "KeyStore",
]
