"""FastAPI Application Entry Point."""

import hashlib
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1 import api_router
from app.core.config import DEV_JWT_REFRESH_SECRET_KEY, DEV_JWT_SECRET_KEY, settings
from app.core.database import init_db
from app.core.error_handlers import register_exception_handlers
from app.core.logging import configure_logging
from app.core.rate_limit import limiter
from app.middleware import CORSLoggingMiddleware, RequestContextMiddleware
from app.schemas.response import ApiResponse

configure_logging(settings)
logger = structlog.get_logger(__name__)

# Sentry must be initialized before the FastAPI app is created
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.APP_ENV,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        send_default_pii=False,
        attach_stacktrace=True,
    )
    logger.info("sentry.initialized", environment=settings.APP_ENV)
else:
    logger.info("sentry.disabled")


PLACEHOLDER_KEYWORDS = ("your-", "change-", "changeme", "example", "placeholder", "secret-key")


def audit_jwt_secrets() -> None:
    """
    Check the JWT signing secrets at startup.

    Length and distinctness are already enforced when settings load. This adds
    placeholder detection in production and logs a short fingerprint of each
    secret so a rotation shows up in the logs.

    Raises:
        SystemExit: If a production secret looks like a placeholder or a dev default
    """
    secrets = {
        "JWT_SECRET_KEY": settings.JWT_SECRET_KEY or "",
        "JWT_REFRESH_SECRET_KEY": settings.JWT_REFRESH_SECRET_KEY or "",
    }

    for name, value in secrets.items():
        if settings.is_production:
            lowered = value.lower()
            if value in (DEV_JWT_SECRET_KEY, DEV_JWT_REFRESH_SECRET_KEY) or any(
                keyword in lowered for keyword in PLACEHOLDER_KEYWORDS
            ):
                logger.error("security.jwt_secret_placeholder", setting=name)
                raise SystemExit(1)

        fingerprint = hashlib.sha256(value.encode()).hexdigest()[:16]
        logger.info("security.jwt_secret_loaded", setting=name, fingerprint=fingerprint)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    audit_jwt_secrets()
    await init_db()
    logger.info("app.startup", environment=settings.APP_ENV, api_prefix=settings.API_V1_PREFIX)
    yield
    logger.info("app.shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    description="Cookie-based JWT authentication for a chat application",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
register_exception_handlers(app)

# Middleware added last runs first: request context, CORS logging, CORS, rate limit
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
        "X-Requested-With",
        "X-Request-ID",
    ],
    expose_headers=["X-Request-ID"],
    max_age=settings.CORS_MAX_AGE,
)
app.add_middleware(CORSLoggingMiddleware, allowed_origins=settings.ALLOWED_ORIGINS)
app.add_middleware(RequestContextMiddleware)


@app.get("/", tags=["root"], response_model=ApiResponse[dict[str, str]])
async def root() -> ApiResponse[dict[str, str]]:
    """Root endpoint."""
    return ApiResponse(
        message=f"Welcome to {settings.APP_NAME}",
        data={
            "docs": "/api/docs",
            "health": "/health",
            "api": settings.API_V1_PREFIX,
        },
    )


@app.get("/health", tags=["health"], response_model=ApiResponse[dict[str, str]])
@limiter.exempt
async def health_check() -> ApiResponse[dict[str, str]]:
    """Liveness probe."""
    return ApiResponse(
        message="OK",
        data={
            "status": "healthy",
            "service": settings.APP_NAME,
            "environment": settings.APP_ENV,
        },
    )


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
    )
