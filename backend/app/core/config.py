"""Application Configuration using Pydantic Settings."""

import os
from pathlib import Path
from typing import Annotated, List, Literal
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = structlog.get_logger()

# Built-in secrets for development and test runs only. Production must supply its own.
DEV_JWT_SECRET_KEY = "dev-jwt-secret-key-32-characters-long"
DEV_JWT_REFRESH_SECRET_KEY = "dev-jwt-refresh-secret-32-chars-long"

MIN_SECRET_LENGTH = 32


def get_env_file() -> str:
    """
    Determine which .env file to load based on APP_ENV.

    Returns:
        Path to the .env file to load
    """
    app_env = os.getenv("APP_ENV", "development")
    base_dir = Path(__file__).parent.parent.parent  # backend/

    if app_env == "test":
        env_file = base_dir / ".env.test"
        if env_file.exists():
            return str(env_file)

    if app_env == "production":
        env_file = base_dir / ".env.production"
        if env_file.exists():
            return str(env_file)

    # Default to .env
    return str(base_dir / ".env")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=get_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Chat App API"
    APP_ENV: Literal["development", "production", "test"] = "development"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./chat_app.db"

    # JWT
    JWT_SECRET_KEY: str | None = None
    JWT_REFRESH_SECRET_KEY: str | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Cookies
    COOKIE_SECURE: bool = False  # Always forced on in production
    COOKIE_SAME_SITE: Literal["lax", "strict", "none"] = "lax"
    COOKIE_DOMAIN: str | None = None

    # CORS
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_MAX_AGE: int = 600  # Preflight cache duration in seconds

    # Rate Limiting (fixed window, keyed by client IP)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_DEFAULT: str = "100 per 15 minutes"
    RATE_LIMIT_AUTH: str = "5 per 15 minutes"  # Signin/signup brute-force protection
    RATE_LIMIT_AUTH_REFRESH: str = "10/minute"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FILE: str = "logs/app.log"
    LOG_JSON: bool | None = None  # Defaults to JSON everywhere except development

    # Email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAILS_FROM_EMAIL: str = ""
    EMAILS_FROM_NAME: str = "Chat App"
    FRONTEND_URL: str = "http://localhost:5173"

    # Error Tracking (Sentry)
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: str | List[str]) -> List[str]:
        """Parse allowed origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("ALLOWED_ORIGINS", mode="after")
    @classmethod
    def validate_cors_origins(cls, origins: List[str], info) -> List[str]:
        """
        Validate CORS origins for security.

        Security rules:
        1. No wildcards ("*", "http://*", etc.)
        2. Valid URL format (scheme://host[:port])
        3. In production: HTTPS only (except localhost/127.0.0.1)
        4. No empty or whitespace-only origins

        Args:
            origins: List of origin URLs to validate
            info: ValidationInfo containing other field values

        Returns:
            Validated list of origins

        Raises:
            ValueError: If any origin violates security rules
        """
        if not origins:
            raise ValueError("ALLOWED_ORIGINS cannot be empty. At least one origin must be specified.")

        app_env = info.data.get("APP_ENV", "development")
        is_production = app_env == "production"

        validated_origins = []

        for origin in origins:
            origin = origin.strip()

            if not origin:
                raise ValueError("CORS origin cannot be empty or whitespace-only")

            if "*" in origin:
                raise ValueError(
                    f"CORS origin '{origin}' contains wildcard '*'. "
                    "Wildcards are not allowed when credentials are enabled. "
                    "Specify exact domains instead."
                )

            parsed = urlparse(origin)

            if not parsed.scheme:
                raise ValueError(
                    f"CORS origin '{origin}' must include scheme (http:// or https://). "
                    f"Example: https://chat.example.com"
                )

            if not parsed.netloc:
                raise ValueError(
                    f"CORS origin '{origin}' must include hostname. "
                    f"Example: https://chat.example.com"
                )

            if is_production:
                is_localhost = parsed.netloc.startswith("localhost") or parsed.netloc.startswith("127.0.0.1")

                if parsed.scheme != "https" and not is_localhost:
                    raise ValueError(
                        f"CORS origin '{origin}' must use HTTPS in production. "
                        f"HTTP is only allowed for localhost/127.0.0.1. "
                        f"Change to: https://{parsed.netloc}"
                    )

            validated_origins.append(origin)

        return validated_origins

    @model_validator(mode="after")
    def validate_jwt_secrets(self) -> "Settings":
        """
        Fill development secrets and enforce secret requirements.

        Development and test environments fall back to built-in secrets.
        Production must provide both secrets explicitly.

        Raises:
            ValueError: If a secret is missing, too short, or both classes share one secret
        """
        if not self.is_production:
            if not self.JWT_SECRET_KEY:
                self.JWT_SECRET_KEY = DEV_JWT_SECRET_KEY
            if not self.JWT_REFRESH_SECRET_KEY:
                self.JWT_REFRESH_SECRET_KEY = DEV_JWT_REFRESH_SECRET_KEY

        for name in ("JWT_SECRET_KEY", "JWT_REFRESH_SECRET_KEY"):
            value = getattr(self, name)
            if not value:
                raise ValueError(f"{name} must be set in production")
            if len(value) < MIN_SECRET_LENGTH:
                raise ValueError(f"{name} must be at least {MIN_SECRET_LENGTH} characters")

        if self.JWT_SECRET_KEY == self.JWT_REFRESH_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY and JWT_REFRESH_SECRET_KEY must be different")

        return self


def load_settings() -> Settings:
    """
    Load settings once at process start.

    Raises:
        SystemExit: If the environment does not produce a valid configuration
    """
    try:
        return Settings()  # type: ignore
    except ValidationError as exc:
        logger.error(
            "config.invalid_environment",
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ],
        )
        raise SystemExit(1) from exc


# Create global settings instance
settings = load_settings()
