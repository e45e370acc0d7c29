"""Application error taxonomy.

Every error raised on purpose by the application carries a machine-readable
``ErrorKind``, a human-readable message and the HTTP status it maps to. The
exception handlers in ``app.core.error_handlers`` turn them into the uniform
JSON error envelope.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable error codes returned in ``error.code``."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base exception for all application errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value} message={self.message!r}>"


class ValidationError(AppError):
    """Raised when input is malformed or violates a business rule."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400
    default_message = "Validation failed"


class PasswordMismatchError(ValidationError):
    """Raised when password and confirmPassword differ on signup."""

    default_message = "Password and confirm password do not match"


class DuplicateEmailError(AppError):
    """Raised when signing up with an email that is already registered."""

    kind = ErrorKind.DUPLICATE_EMAIL
    status_code = 400
    default_message = "An account with this email already exists"


class InvalidCredentialsError(AppError):
    """Raised when email or password is incorrect during signin.

    The message never reveals which of the two was wrong.
    """

    kind = ErrorKind.INVALID_CREDENTIALS
    status_code = 401
    default_message = "Invalid email or password"


class TokenError(AppError):
    """Base class for token verification failures."""

    kind = ErrorKind.TOKEN_INVALID
    status_code = 401
    default_message = "Invalid token"


class TokenInvalidError(TokenError):
    """Raised when a token has a bad signature, wrong class, or is malformed."""


class TokenExpiredError(TokenError):
    """Raised when a correctly signed token is past its expiry."""

    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "Token has expired"


class InvalidRefreshTokenError(TokenError):
    """Raised when a refresh token fails verification during refresh."""

    kind = ErrorKind.INVALID_REFRESH_TOKEN
    default_message = "Invalid refresh token"


class UserNotFoundError(AppError):
    """Raised when the account behind a refresh token no longer exists."""

    kind = ErrorKind.USER_NOT_FOUND
    status_code = 401
    default_message = "User not found"


class NotFoundError(AppError):
    """Raised for unknown routes or resources."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class RateLimitedError(AppError):
    """Raised when a client has used up its failed-attempt budget."""

    kind = ErrorKind.RATE_LIMITED
    status_code = 429
    default_message = "Too many requests from this IP, please try again later."

    def __init__(
        self,
        message: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message, details)
        self.headers = headers or {}
