"""Cookie policy for the authentication token cookies."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Literal

from fastapi import Response

from app.core.config import Settings
from app.schemas.token import TokenPair, TokenType

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

COOKIE_NAMES = {
    TokenType.ACCESS: ACCESS_TOKEN_COOKIE,
    TokenType.REFRESH: REFRESH_TOKEN_COOKIE,
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CookieOptions:
    """Attribute set for one cookie write. ``max_age_ms`` is in milliseconds."""

    httponly: bool
    secure: bool
    samesite: Literal["lax", "strict", "none"]
    path: str
    max_age_ms: int
    domain: str | None = None
    expires: datetime | None = None

    def set_cookie_kwargs(self) -> dict:
        """Translate into keyword arguments for ``Response.set_cookie``."""
        return {
            "max_age": self.max_age_ms // 1000,
            "expires": self.expires,
            "path": self.path,
            "domain": self.domain,
            "secure": self.secure,
            "httponly": self.httponly,
            "samesite": self.samesite,
        }


class CookiePolicy:
    """
    Derive cookie attributes for each token class from configuration.

    Writing and clearing share one base attribute set, so a clearing
    Set-Cookie always overwrites the cookie that was written.
    """

    def __init__(
        self,
        secure: bool,
        samesite: Literal["lax", "strict", "none"],
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        domain: str | None = None,
    ):
        self._base = CookieOptions(
            httponly=True,
            secure=secure,
            samesite=samesite,
            path="/",
            max_age_ms=0,
            domain=domain,
        )
        self._ttls = {
            TokenType.ACCESS: access_ttl,
            TokenType.REFRESH: refresh_ttl,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "CookiePolicy":
        return cls(
            secure=True if settings.is_production else settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAME_SITE,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            domain=settings.COOKIE_DOMAIN,
        )

    def options_for(self, token_type: TokenType) -> CookieOptions:
        ttl_ms = int(self._ttls[token_type].total_seconds() * 1000)
        return replace(self._base, max_age_ms=ttl_ms)

    def clearing_options(self) -> CookieOptions:
        return replace(self._base, max_age_ms=0, expires=EPOCH)

    def write_tokens(self, response: Response, tokens: TokenPair) -> None:
        """Set both token cookies on ``response``."""
        response.set_cookie(
            ACCESS_TOKEN_COOKIE,
            tokens.access_token,
            **self.options_for(TokenType.ACCESS).set_cookie_kwargs(),
        )
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            tokens.refresh_token,
            **self.options_for(TokenType.REFRESH).set_cookie_kwargs(),
        )

    def clear_tokens(self, response: Response) -> None:
        """Expire both token cookies on ``response``."""
        options = self.clearing_options().set_cookie_kwargs()
        for name in COOKIE_NAMES.values():
            response.set_cookie(name, "", **options)
