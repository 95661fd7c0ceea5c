"""
Messaging Package

Send, drain, history and mark-read over encrypted message envelopes.
"""

from .results import OUTGOING, Decrypted, Failed, MessageView, Outgoing, ReadResult
from .service import MessagingService

__all__ = [
    "MessagingService",
    "MessageView",
    "ReadResult",
    "Decrypted",
    "Failed",
    "Outgoing",
    "OUTGOING",
]
