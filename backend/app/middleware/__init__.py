"""HTTP middleware."""

from app.middleware.cors_logging import CORSLoggingMiddleware
from app.middleware.request_context import RequestContextMiddleware

__all__ = ["CORSLoggingMiddleware", "RequestContextMiddleware"]
