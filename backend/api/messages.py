"""
Message API Routes

Send, receive (drain), unread listing, history and mark-read.
All encryption/decryption happens in the backend.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, status

from api.dependencies import ServiceDep, UserDep
from api.schemas import (
    EnvelopeOut,
    HistoryResponse,
    MarkReadResponse,
    MessageListResponse,
    MessageOut,
    SendMessageRequest,
    SendMessageResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/send",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(request: SendMessageRequest, user_id: UserDep, service: ServiceDep):
    message_id = await service.send(
        sender_id=user_id,
        receiver_id=request.receiver_id,
        plaintext=request.message,
        attachment_ref=request.attachment_ref,
    )
    return SendMessageResponse(message_id=message_id)


@router.get("/receive", response_model=MessageListResponse)
async def receive_messages(user_id: UserDep, service: ServiceDep):
    """
    Decrypt all unread messages and mark them read.

    Messages that fail to decrypt are returned with status "failed" and
    are marked read along with the rest of the batch.
    """
    views = await service.drain_inbox(user_id)
    return MessageListResponse(messages=[MessageOut.from_view(v) for v in views])


@router.get("/unread", response_model=MessageListResponse)
async def get_unread_messages(user_id: UserDep, service: ServiceDep):
    """Decrypt unread messages without marking them read."""
    views = await service.peek_unread(user_id)
    return MessageListResponse(messages=[MessageOut.from_view(v) for v in views])


@router.get("/history/{other_user_id}", response_model=HistoryResponse)
async def get_chat_history(
    other_user_id: Annotated[int, Path(gt=0)],
    user_id: UserDep,
    service: ServiceDep,
):
    views = await service.history(user_id, other_user_id)
    return HistoryResponse(history=[MessageOut.from_view(v) for v in views])


@router.patch("/read/{message_id}", response_model=MarkReadResponse)
async def mark_as_read(message_id: str, user_id: UserDep, service: ServiceDep):
    envelope = await service.mark_read(message_id, user_id)
    return MarkReadResponse(updated=EnvelopeOut.from_envelope(envelope))
