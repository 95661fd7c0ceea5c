"""
Per-message read results.

Batch reads return one MessageView per envelope. Its result is exactly
one of Decrypted, Failed or Outgoing.
"""

from dataclasses import dataclass
from typing import Union

from storage.models import MessageEnvelope


@dataclass(frozen=True)
class Decrypted:
    plaintext: str
    status = "decrypted"


@dataclass(frozen=True)
class Failed:
    reason: str
    status = "failed"


@dataclass(frozen=True)
class Outgoing:
    """Sent by the reader; only the receiver's key can open it."""
    status = "outgoing"


OUTGOING = Outgoing()

ReadResult = Union[Decrypted, Failed, Outgoing]


@dataclass
class MessageView:
    envelope: MessageEnvelope
    result: ReadResult

    @property
    def ok(self) -> bool:
        return not isinstance(self.result, Failed)
