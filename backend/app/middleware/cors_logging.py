"""CORS logging middleware for security monitoring."""

from typing import Iterable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = structlog.get_logger(__name__)


class CORSLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log cross-origin requests and flag origins outside the whitelist.

    Requests without an ``Origin`` header (curl, mobile clients, same-origin
    navigation) pass through silently. Cross-origin requests from an origin
    that is not allowed are logged at warning level; CORSMiddleware itself
    decides what the browser gets to see.

    Usage:
        app.add_middleware(CORSLoggingMiddleware, allowed_origins=settings.ALLOWED_ORIGINS)
    """

    def __init__(self, app: ASGIApp, allowed_origins: Iterable[str] = ()):
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("Origin")
        if origin is None:
            return await call_next(request)

        is_preflight = request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers
        allowed = origin in self.allowed_origins

        response: Response = await call_next(request)

        log_context = {
            "method": request.method,
            "path": request.url.path,
            "origin": origin,
            "is_preflight": is_preflight,
            "status_code": response.status_code,
        }

        if not allowed:
            logger.warning("cors.origin_blocked", **log_context)
        elif is_preflight:
            logger.debug("cors.preflight", **log_context)
        else:
            logger.debug("cors.request", **log_context)

        return response
