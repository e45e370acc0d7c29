"""Tests for the token cookie policy."""

from datetime import timedelta

from fastapi import Response

from app.core.config import Settings
from app.core.cookies import EPOCH, CookiePolicy
from app.schemas.token import TokenPair, TokenType

PROD_SECRETS = {
    "JWT_SECRET_KEY": "p" * 40,
    "JWT_REFRESH_SECRET_KEY": "q" * 40,
}


def make_policy(**overrides) -> CookiePolicy:
    options = {
        "secure": False,
        "samesite": "lax",
        "access_ttl": timedelta(minutes=15),
        "refresh_ttl": timedelta(days=7),
    }
    options.update(overrides)
    return CookiePolicy(**options)


class TestCookieOptions:
    """Test the attribute sets derived for each token class."""

    def test_access_cookie_options(self):
        """Test access cookies live as long as access tokens."""
        options = make_policy().options_for(TokenType.ACCESS)

        assert options.httponly is True
        assert options.path == "/"
        assert options.samesite == "lax"
        assert options.max_age_ms == 15 * 60 * 1000

    def test_refresh_cookie_options(self):
        """Test refresh cookies live as long as refresh tokens."""
        options = make_policy().options_for(TokenType.REFRESH)

        assert options.max_age_ms == 7 * 24 * 60 * 60 * 1000

    def test_max_age_converted_to_seconds(self):
        """Test the Set-Cookie max age is expressed in seconds."""
        kwargs = make_policy().options_for(TokenType.ACCESS).set_cookie_kwargs()

        assert kwargs["max_age"] == 900

    def test_clearing_options_match_base_attributes(self):
        """Test clearing keeps path, httpOnly and sameSite so the browser overwrites the cookie."""
        policy = make_policy(samesite="strict", secure=True, domain="chat.example.com")
        written = policy.options_for(TokenType.ACCESS)
        cleared = policy.clearing_options()

        assert cleared.max_age_ms == 0
        assert cleared.expires == EPOCH
        for attr in ("httponly", "secure", "samesite", "path", "domain"):
            assert getattr(cleared, attr) == getattr(written, attr)


class TestCookiePolicyFromSettings:
    """Test configuration-driven policy construction."""

    def test_secure_forced_in_production(self):
        """Test cookies are always secure in production."""
        settings = Settings(APP_ENV="production", COOKIE_SECURE=False, **PROD_SECRETS)

        policy = CookiePolicy.from_settings(settings)

        assert policy.options_for(TokenType.ACCESS).secure is True

    def test_secure_follows_setting_outside_production(self):
        """Test the secure flag is configurable in development."""
        settings = Settings(APP_ENV="development", COOKIE_SECURE=False)

        policy = CookiePolicy.from_settings(settings)

        assert policy.options_for(TokenType.REFRESH).secure is False

    def test_ttls_follow_token_lifetimes(self):
        """Test cookie lifetimes follow the configured token lifetimes."""
        settings = Settings(ACCESS_TOKEN_EXPIRE_MINUTES=5, REFRESH_TOKEN_EXPIRE_DAYS=1)

        policy = CookiePolicy.from_settings(settings)

        assert policy.options_for(TokenType.ACCESS).max_age_ms == 5 * 60 * 1000
        assert policy.options_for(TokenType.REFRESH).max_age_ms == 24 * 60 * 60 * 1000


class TestWritingCookies:
    """Test Set-Cookie headers produced on a response."""

    def test_write_tokens(self):
        """Test both token cookies are written."""
        response = Response()

        make_policy().write_tokens(response, TokenPair(access_token="aaa", refresh_token="rrr"))

        headers = response.headers.getlist("set-cookie")
        assert any(h.startswith("accessToken=aaa;") for h in headers)
        assert any(h.startswith("refreshToken=rrr;") for h in headers)

    def test_clear_tokens(self):
        """Test both token cookies are expired."""
        response = Response()

        make_policy().clear_tokens(response)

        headers = response.headers.getlist("set-cookie")
        assert len(headers) == 2
        for header in headers:
            assert "Max-Age=0" in header
            assert "Thu, 01 Jan 1970 00:00:00 GMT" in header
