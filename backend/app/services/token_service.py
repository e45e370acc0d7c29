"""JWT token service.

Issues, verifies and rotates the access/refresh token pair that backs cookie
authentication. Each token class is signed with its own secret and carries an
explicit ``type`` claim, so a token of one class never verifies as the other.

Tokens are self-contained bearer credentials: nothing is stored server-side,
which means a refresh token that has already been rotated keeps working until
its own expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from app.core.config import Settings
from app.core.exceptions import (
    InvalidRefreshTokenError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    UserNotFoundError,
)
from app.schemas.token import TokenIdentity, TokenPair, TokenPayload, TokenType

logger = structlog.get_logger(__name__)


class IdentityLookup(Protocol):
    """The slice of the credential store that token refresh depends on."""

    async def get_identity(self, user_id: str) -> TokenIdentity | None: ...


class TokenService:
    """Mint and validate signed identity tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("JWT secrets cannot be empty")

        self._secrets = {
            TokenType.ACCESS: access_secret,
            TokenType.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenType.ACCESS: access_ttl,
            TokenType.REFRESH: refresh_ttl,
        }
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            access_secret=settings.JWT_SECRET_KEY or "",
            refresh_secret=settings.JWT_REFRESH_SECRET_KEY or "",
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=settings.JWT_ALGORITHM,
        )

    @property
    def access_ttl(self) -> timedelta:
        return self._ttls[TokenType.ACCESS]

    @property
    def refresh_ttl(self) -> timedelta:
        return self._ttls[TokenType.REFRESH]

    def issue_access_token(
        self,
        identity: TokenIdentity,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token for ``identity``."""
        return self._issue(identity, TokenType.ACCESS, expires_delta)

    def issue_refresh_token(
        self,
        identity: TokenIdentity,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a refresh token for ``identity``."""
        return self._issue(identity, TokenType.REFRESH, expires_delta)

    def issue_token_pair(self, identity: TokenIdentity) -> TokenPair:
        """Create an access and a refresh token carrying the same identity."""
        return TokenPair(
            access_token=self.issue_access_token(identity),
            refresh_token=self.issue_refresh_token(identity),
        )

    def verify_access_token(self, token: str) -> TokenIdentity:
        """
        Verify an access token and return its identity.

        Raises:
            TokenExpiredError: If the token is correctly signed but expired
            TokenInvalidError: If the signature, class or payload is wrong
        """
        return self._verify(token, TokenType.ACCESS)

    def verify_refresh_token(self, token: str) -> TokenIdentity:
        """
        Verify a refresh token and return its identity.

        Raises:
            TokenExpiredError: If the token is correctly signed but expired
            TokenInvalidError: If the signature, class or payload is wrong
        """
        return self._verify(token, TokenType.REFRESH)

    async def refresh(self, refresh_token: str, users: IdentityLookup) -> TokenPair:
        """
        Exchange a refresh token for a brand-new token pair.

        The account is looked up again so that deleted users cannot keep
        refreshing. The identity in the new pair comes from the store, not
        from the old token.

        Args:
            refresh_token: Refresh token presented by the client
            users: Credential store used to confirm the account still exists

        Returns:
            A freshly issued token pair

        Raises:
            InvalidRefreshTokenError: If the refresh token fails verification
            UserNotFoundError: If the account no longer exists
        """
        try:
            claimed = self.verify_refresh_token(refresh_token)
        except TokenError as e:
            raise InvalidRefreshTokenError(
                "Refresh token has expired" if isinstance(e, TokenExpiredError) else None
            ) from e

        identity = await users.get_identity(claimed.id)
        if identity is None:
            logger.info("auth.refresh_user_missing", user_id=claimed.id)
            raise UserNotFoundError()

        return self.issue_token_pair(identity)

    def _issue(
        self,
        identity: TokenIdentity,
        token_type: TokenType,
        expires_delta: timedelta | None,
    ) -> str:
        now = datetime.now(tz=timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self._ttls[token_type])

        payload = {
            "sub": identity.id,
            "email": identity.email,
            "type": token_type.value,
            "iat": now,
            "exp": expire,
        }

        return jwt.encode(payload, self._secrets[token_type], algorithm=self._algorithm)

    def _verify(self, token: str, token_type: TokenType) -> TokenIdentity:
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self._algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except JWTError as e:
            raise TokenInvalidError() from e

        try:
            payload = TokenPayload.model_validate(claims)
        except ValidationError as e:
            raise TokenInvalidError("Malformed token payload") from e

        if payload.type != token_type:
            raise TokenInvalidError("Invalid token type")

        return TokenIdentity(id=payload.sub, email=payload.email)
