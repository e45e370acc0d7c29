"""Messaging endpoints (authenticated)."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter

from app.api.deps import CurrentUser
from app.schemas.message import SendMessageRequest, SendMessageResult
from app.schemas.response import ApiResponse

router = APIRouter()
logger = structlog.get_logger()


@router.post("/send", response_model=ApiResponse[SendMessageResult])
async def send_message(
    message_in: SendMessageRequest,
    current_user: CurrentUser,
) -> ApiResponse[SendMessageResult]:
    """
    Accept a message from the authenticated user.

    Messages are not persisted or delivered yet; the endpoint acknowledges the
    request on behalf of the sender identified by the access token.
    """
    logger.info(
        "messages.send",
        sender_id=current_user.id,
        recipient_id=message_in.recipient_id,
        length=len(message_in.content),
    )

    return ApiResponse(
        message="Message sent",
        data=SendMessageResult(
            sender_id=current_user.id,
            recipient_id=message_in.recipient_id,
            content=message_in.content,
            sent_at=datetime.now(tz=timezone.utc),
        ),
    )
