"""Token schemas for authentication."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class TokenType(str, Enum):
    """Token class, also embedded as the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenIdentity(BaseModel):
    """Identity claim carried by both access and refresh tokens."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class TokenPair(BaseModel):
    """Access and refresh tokens minted in one issuance call."""

    access_token: str
    refresh_token: str


class TokenPayload(BaseModel):
    """Decoded token claims."""

    sub: str
    email: str
    type: TokenType
    iat: datetime | None = None
    exp: datetime
