"""User Pydantic schemas for request/response validation."""

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator
from pydantic.alias_generators import to_camel

PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&"
FULL_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


class CamelModel(BaseModel):
    """Base schema exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(CamelModel):
    """Schema for user signup."""

    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=50)
    password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str
    avatar_url: HttpUrl | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        if not FULL_NAME_PATTERN.match(v):
            raise ValueError("Full name can only contain letters and spaces")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        if not any(c in PASSWORD_SPECIAL_CHARACTERS for c in v):
            raise ValueError(
                f"Password must contain at least one special character ({PASSWORD_SPECIAL_CHARACTERS})"
            )
        return v

    @field_validator("avatar_url", mode="before")
    @classmethod
    def empty_avatar_url(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SigninRequest(CamelModel):
    """Schema for user signin."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v


class UserPublic(CamelModel):
    """User schema for API responses. Never carries the password hash."""

    id: uuid.UUID
    email: EmailStr
    full_name: str
    avatar_url: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthUser(CamelModel):
    """Authenticated identity as seen by protected routes."""

    id: str
    email: str
