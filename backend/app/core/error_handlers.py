"""Exception handlers that render every failure as the uniform error envelope."""

import traceback
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import AppError, ErrorKind
from app.schemas.response import ErrorDetail, ErrorResponse, ResponseMetadata

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"


def error_json_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    exc: BaseException | None = None,
) -> JSONResponse:
    """
    Build an error response in the uniform envelope.

    Stack traces are only included in development.

    Args:
        request: Incoming request
        status_code: HTTP status code
        code: Machine-readable error code
        message: Human-readable message
        details: Optional structured details
        exc: Exception whose stack trace may be attached

    Returns:
        JSON response with ``success: false``
    """
    stack = None
    if exc is not None and settings.is_development:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    metadata = ResponseMetadata(path=request.url.path)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        metadata.requestId = request_id

    body = ErrorResponse(
        message=message,
        error=ErrorDetail(code=code, details=details, stack=stack),
        metadata=metadata,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude={"error": {"stack"}} if stack is None else None),
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle errors raised on purpose by the application."""
    logger.info(
        "request.app_error",
        kind=exc.kind.value,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )
    response = error_json_response(
        request,
        status_code=exc.status_code,
        code=exc.kind.value,
        message=exc.message,
        details=exc.details,
    )
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn pydantic request validation failures into a 400 with per-field details."""
    errors = [
        {
            # Drop the "body"/"query" location prefix
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    message = "Validation error: " + "; ".join(f"{e['field']}: {e['message']}" for e in errors)

    return error_json_response(
        request,
        status_code=400,
        code=ErrorKind.VALIDATION_ERROR.value,
        message=message,
        details=errors,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors (unknown path, wrong method) raised by Starlette."""
    if exc.status_code == 404:
        code = ErrorKind.NOT_FOUND.value
        message = f"Cannot find {request.url.path} on this server!"
    else:
        code = f"HTTP_{exc.status_code}"
        message = str(exc.detail)

    response = error_json_response(request, status_code=exc.status_code, code=code, message=message)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a 429 in the uniform envelope, keeping the X-RateLimit-* headers."""
    logger.warning(
        "rate_limit.exceeded",
        client=request.client.host if request.client else None,
        path=request.url.path,
        method=request.method,
        limit=str(exc.detail),
    )

    response = error_json_response(
        request,
        status_code=429,
        code=ErrorKind.RATE_LIMITED.value,
        message="Too many requests from this IP, please try again later.",
        details={"limit": str(exc.detail)},
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors with their stack trace and answer with a generic 500."""
    logger.error(
        "request.unhandled_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return error_json_response(
        request,
        status_code=500,
        code=ErrorKind.INTERNAL_ERROR.value,
        message=str(exc) if settings.is_development else GENERIC_ERROR_MESSAGE,
        exc=exc,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
