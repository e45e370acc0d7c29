"""Message schemas."""

from datetime import datetime

from pydantic import Field

from app.schemas.user import CamelModel


class SendMessageRequest(CamelModel):
    """Schema for sending a chat message."""

    recipient_id: str = Field(..., min_length=1, max_length=64)
    content: str = Field(..., min_length=1, max_length=2000)


class SendMessageResult(CamelModel):
    """Acknowledgement for an accepted message. Nothing is stored or delivered."""

    sender_id: str
    recipient_id: str
    content: str
    sent_at: datetime
