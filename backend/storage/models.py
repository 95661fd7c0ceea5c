"""
Storage Data Models
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class KeyPair:
    """A user's stored key pair. private_key is the wrapped (at-rest) form."""
    user_id: int
    public_key: str
    private_key: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class MessageEnvelope:
    """One stored encrypted message."""
    id: str
    sender_id: int
    receiver_id: int
    ciphertext: str
    created_at: datetime
    is_read: bool = False
    attachment_ref: Optional[str] = None
