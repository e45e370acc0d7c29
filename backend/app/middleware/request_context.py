"""Request context middleware: request IDs and one access log line per request."""

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import request_id_var

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Assign a request ID and log every request.

    An incoming ``X-Request-ID`` header is reused, otherwise a new UUID is
    generated. The ID is exposed on ``request.state.request_id``, bound to the
    logging context, echoed back in the response header and reported in the
    ``metadata.requestId`` field of every JSON envelope.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_var.set(request_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception as e:
            # The error handler answers with a 500 outside this middleware
            self._log_request(request, status_code=500, started=started, error=str(e))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        self._log_request(request, status_code=response.status_code, started=started)
        return response

    @staticmethod
    def _log_request(request: Request, status_code: int, started: float, **extra) -> None:
        log = logger.error if "error" in extra else logger.info
        log(
            "http.request",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            client=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent", "unknown"),
            **extra,
        )
