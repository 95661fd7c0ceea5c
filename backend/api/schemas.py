"""
API Request/Response Models
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from messaging import Decrypted, Failed, MessageView
from storage.models import MessageEnvelope


class PublicKeyResponse(BaseModel):
    success: bool = True
    user_id: int
    public_key: str


class EncryptRequest(BaseModel):
    receiver_id: int = Field(gt=0)
    message: str = Field(min_length=1)


class EncryptResponse(BaseModel):
    success: bool = True
    encrypted_message: str


class DecryptRequest(BaseModel):
    encrypted_message: str = Field(min_length=1)


class DecryptResponse(BaseModel):
    success: bool = True
    decrypted_message: str


class SendMessageRequest(BaseModel):
    receiver_id: int = Field(gt=0)
    message: str = Field(min_length=1)
    attachment_ref: Optional[str] = None


class SendMessageResponse(BaseModel):
    success: bool = True
    message: str = "Message sent successfully"
    message_id: str


class EnvelopeOut(BaseModel):
    """Envelope metadata. The ciphertext is never echoed back."""
    id: str
    sender_id: int
    receiver_id: int
    attachment_ref: Optional[str] = None
    created_at: datetime
    is_read: bool

    @classmethod
    def from_envelope(cls, envelope: MessageEnvelope) -> "EnvelopeOut":
        return cls(
            id=envelope.id,
            sender_id=envelope.sender_id,
            receiver_id=envelope.receiver_id,
            attachment_ref=envelope.attachment_ref,
            created_at=envelope.created_at,
            is_read=envelope.is_read,
        )


class MessageOut(EnvelopeOut):
    status: str
    decrypted_message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_view(cls, view: MessageView) -> "MessageOut":
        result = view.result
        base = EnvelopeOut.from_envelope(view.envelope).model_dump()
        return cls(
            **base,
            status=result.status,
            decrypted_message=result.plaintext if isinstance(result, Decrypted) else None,
            error=result.reason if isinstance(result, Failed) else None,
        )


class MessageListResponse(BaseModel):
    success: bool = True
    messages: List[MessageOut]


class HistoryResponse(BaseModel):
    success: bool = True
    history: List[MessageOut]


class MarkReadResponse(BaseModel):
    success: bool = True
    updated: EnvelopeOut
