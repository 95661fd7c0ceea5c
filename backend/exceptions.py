"""
Messaging Exceptions

Every failure carries a machine-readable kind and a human-readable message.
Messages never include plaintext, ciphertext bodies or private keys.
"""

from typing import Any, Dict


class MessagingError(Exception):
    """Base exception for messaging core failures."""

    kind = "messaging_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.kind, "message": self.message}


class IdentityError(MessagingError):
    """Caller identity is missing or not a valid user id."""

    kind = "identity_error"


class KeyNotFoundError(MessagingError):
    """Target user has no key pair."""

    kind = "key_not_found"

    def __init__(self, user_id: int, message: str | None = None):
        super().__init__(message or f"No key pair found for user {user_id}")
        self.user_id = user_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["user_id"] = self.user_id
        return data


class CipherError(MessagingError):
    """Malformed key or ciphertext, wrong key, or oversized plaintext."""

    kind = "cipher_error"


class AuthorizationError(MessagingError):
    """Actor is not the owner of the envelope."""

    kind = "authorization_error"


class NotFoundError(MessagingError):
    """Referenced envelope does not exist."""

    kind = "not_found"

    def __init__(self, envelope_id: str):
        super().__init__(f"Message {envelope_id} not found")
        self.envelope_id = envelope_id


def validate_user_id(user_id: Any) -> int:
    """Return user_id if it is a positive integer, else raise IdentityError."""
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise IdentityError("A valid numeric user id is required")
    return user_id
