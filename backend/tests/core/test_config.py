"""Unit tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from app.core.config import (
    DEV_JWT_REFRESH_SECRET_KEY,
    DEV_JWT_SECRET_KEY,
    Settings,
    load_settings,
)

PROD_SECRETS = {
    "JWT_SECRET_KEY": "a" * 40,
    "JWT_REFRESH_SECRET_KEY": "b" * 40,
}


class TestJWTSecrets:
    """Test JWT secret requirements."""

    def test_development_falls_back_to_builtin_secrets(self):
        """Test development gets usable secrets without configuration."""
        settings = Settings(APP_ENV="development", JWT_SECRET_KEY=None, JWT_REFRESH_SECRET_KEY=None)

        assert settings.JWT_SECRET_KEY == DEV_JWT_SECRET_KEY
        assert settings.JWT_REFRESH_SECRET_KEY == DEV_JWT_REFRESH_SECRET_KEY

    def test_production_requires_secrets(self):
        """Test production refuses to start without explicit secrets."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(APP_ENV="production", JWT_SECRET_KEY=None, JWT_REFRESH_SECRET_KEY=None)

        assert "must be set in production" in str(exc_info.value)

    def test_short_secret_rejected(self):
        """Test secrets shorter than 32 characters are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(JWT_SECRET_KEY="too-short", JWT_REFRESH_SECRET_KEY="b" * 40)

        assert "at least 32 characters" in str(exc_info.value)

    def test_shared_secret_rejected(self):
        """Test access and refresh tokens cannot share a secret."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(JWT_SECRET_KEY="s" * 40, JWT_REFRESH_SECRET_KEY="s" * 40)

        assert "must be different" in str(exc_info.value)

    def test_production_with_secrets(self):
        """Test production accepts explicit, distinct secrets."""
        settings = Settings(APP_ENV="production", **PROD_SECRETS)

        assert settings.is_production
        assert settings.JWT_SECRET_KEY == "a" * 40

    def test_load_settings_exits_on_invalid_environment(self, monkeypatch):
        """Test an invalid environment stops the process."""
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        monkeypatch.delenv("JWT_REFRESH_SECRET_KEY", raising=False)

        with pytest.raises(SystemExit) as exc_info:
            load_settings()

        assert exc_info.value.code == 1


class TestGeneralSettings:
    """Test environment parsing for individual fields."""

    def test_log_level_is_case_insensitive(self):
        """Test log levels are normalized to upper case."""
        settings = Settings(LOG_LEVEL="debug")

        assert settings.LOG_LEVEL == "DEBUG"

    def test_invalid_app_env_rejected(self):
        """Test unknown environments are rejected."""
        with pytest.raises(ValidationError):
            Settings(APP_ENV="staging")

    def test_environment_variables_are_read(self, monkeypatch):
        """Test values are read from the process environment."""
        monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
        monkeypatch.setenv("COOKIE_SAME_SITE", "strict")

        settings = Settings()

        assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 30
        assert settings.COOKIE_SAME_SITE == "strict"


class TestCORSOriginValidation:
    """Test suite for CORS origin validation in Settings."""

    def test_valid_origins_development(self):
        """Test that valid HTTP origins are accepted in development."""
        settings = Settings(
            APP_ENV="development",
            ALLOWED_ORIGINS=[
                "http://localhost:5173",
                "http://127.0.0.1:5173",
                "https://chat.example.com",
            ],
        )

        assert len(settings.ALLOWED_ORIGINS) == 3
        assert "https://chat.example.com" in settings.ALLOWED_ORIGINS

    def test_valid_origins_production_https_only(self):
        """Test that only HTTPS origins are accepted in production (except localhost)."""
        settings = Settings(
            APP_ENV="production",
            ALLOWED_ORIGINS=[
                "https://chat.example.com",
                "https://www.chat.example.com",
                "http://localhost:5173",  # Allowed in production
                "http://127.0.0.1:5173",  # Allowed in production
            ],
            **PROD_SECRETS,
        )

        assert len(settings.ALLOWED_ORIGINS) == 4

    def test_reject_wildcard_asterisk(self):
        """Test that wildcard '*' is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(ALLOWED_ORIGINS=["*"])

        assert "wildcard" in str(exc_info.value).lower()

    def test_reject_wildcard_in_domain(self):
        """Test that wildcard subdomains are rejected."""
        with pytest.raises(ValidationError):
            Settings(ALLOWED_ORIGINS=["https://*.example.com"])

    def test_reject_http_in_production_non_localhost(self):
        """Test that plain HTTP is rejected in production for non-localhost origins."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(APP_ENV="production", ALLOWED_ORIGINS=["http://chat.example.com"], **PROD_SECRETS)

        assert "HTTPS" in str(exc_info.value)

    def test_reject_origin_without_scheme(self):
        """Test that origins without a scheme are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(ALLOWED_ORIGINS=["chat.example.com"])

        assert "scheme" in str(exc_info.value)

    def test_reject_origin_without_hostname(self):
        """Test that origins without a hostname are rejected."""
        with pytest.raises(ValidationError):
            Settings(ALLOWED_ORIGINS=["https://"])

    def test_reject_empty_origin(self):
        """Test that whitespace-only origins are rejected."""
        with pytest.raises(ValidationError):
            Settings(ALLOWED_ORIGINS=["https://chat.example.com", "   "])

    def test_reject_empty_origins_list(self):
        """Test that an empty origin list is rejected."""
        with pytest.raises(ValidationError):
            Settings(ALLOWED_ORIGINS=[])

    def test_parse_comma_separated_origins(self):
        """Test that a comma-separated string is split and trimmed."""
        settings = Settings(ALLOWED_ORIGINS="http://localhost:5173, https://chat.example.com")

        assert settings.ALLOWED_ORIGINS == ["http://localhost:5173", "https://chat.example.com"]

    def test_comma_separated_origins_from_environment(self, monkeypatch):
        """Test that ALLOWED_ORIGINS can be set as a plain comma-separated variable."""
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000,https://chat.example.com")

        settings = Settings()

        assert settings.ALLOWED_ORIGINS == ["http://localhost:3000", "https://chat.example.com"]
