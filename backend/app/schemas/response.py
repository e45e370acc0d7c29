"""Uniform JSON response envelope."""

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from app.core.logging import request_id_var

DataT = TypeVar("DataT")


def _utcnow_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _current_request_id() -> str:
    return request_id_var.get() or "unknown"


class ResponseMetadata(BaseModel):
    """Metadata attached to every response."""

    timestamp: str = Field(default_factory=_utcnow_iso)
    requestId: str = Field(default_factory=_current_request_id)
    path: str | None = None


class ErrorDetail(BaseModel):
    """Machine-readable part of an error response."""

    code: str
    details: Any = None
    stack: str | None = None


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope for successful responses."""

    success: bool = True
    message: str = "Success"
    data: DataT | None = None
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class ErrorResponse(BaseModel):
    """Envelope for error responses."""

    success: bool = False
    message: str
    data: None = None
    error: ErrorDetail
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class MessageData(BaseModel):
    """Payload for endpoints that only report an outcome."""

    message: str
