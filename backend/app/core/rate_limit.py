"""Rate limiting configuration using SlowAPI."""

import functools
from email.utils import formatdate
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from fastapi import Request
from limits import RateLimitItem, parse
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.exceptions import RateLimitedError

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def get_client_ip(request: Request) -> str:
    """
    Rate limit key: the client IP address.

    Args:
        request: FastAPI request

    Returns:
        Identifier in the form ``ip:<address>``
    """
    return f"ip:{get_remote_address(request)}"


# Fixed-window counters keyed by client IP
limiter = Limiter(
    key_func=get_client_ip,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    headers_enabled=True,
)


class FailedAttemptLimit:
    """
    Per-client budget that only failed attempts consume.

    The budget is checked before the endpoint runs and a hit is recorded only
    when the endpoint raises, so successful requests are never counted.
    Counters live in the limiter's own storage and ``limiter.reset()`` clears
    them as well.
    """

    def __init__(self, owner: Limiter, limit_value: str, scope: str):
        self.owner = owner
        self.item: RateLimitItem = parse(limit_value)
        self.scope = scope

    def _identifiers(self, request: Request) -> list[str]:
        return [get_client_ip(request), self.scope]

    def _headers(self, request: Request) -> dict[str, str]:
        # HTTP-date form, so SlowAPIMiddleware keeps the later of this and its own reset
        reset_at, _ = self.owner.limiter.get_window_stats(self.item, *self._identifiers(request))
        return {"Retry-After": formatdate(reset_at, usegmt=True)}

    def check(self, request: Request) -> None:
        """
        Refuse the request when the failure budget is used up.

        Raises:
            RateLimitedError: If no failed attempt is left in the current window
        """
        if not self.owner.enabled:
            return
        if not self.owner.limiter.test(self.item, *self._identifiers(request)):
            logger.warning(
                "rate_limit.exceeded",
                client=get_client_ip(request),
                path=request.url.path,
                scope=self.scope,
                limit=str(self.item),
            )
            raise RateLimitedError(
                details={"limit": str(self.item)},
                headers=self._headers(request),
            )

    def record_failure(self, request: Request) -> None:
        if self.owner.enabled:
            self.owner.limiter.hit(self.item, *self._identifiers(request))

    def __call__(self, func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request: Request = kwargs["request"]
            self.check(request)
            try:
                return await func(*args, **kwargs)
            except Exception:
                self.record_failure(request)
                raise

        return wrapper  # type: ignore[return-value]


# Signin and signup share one failure counter per client (brute-force protection)
auth_limit = FailedAttemptLimit(limiter, settings.RATE_LIMIT_AUTH, scope="auth")
auth_refresh_limit = limiter.limit(settings.RATE_LIMIT_AUTH_REFRESH)
