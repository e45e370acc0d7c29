"""Authentication flows: signup, signin and token refresh."""

import structlog

from app.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    PasswordMismatchError,
)
from app.crud.user import UserStore, identity_for
from app.models.user import User
from app.schemas.token import TokenPair
from app.schemas.user import SignupRequest
from app.services.token_service import TokenService

logger = structlog.get_logger(__name__)


class AuthService:
    """Orchestrates the credential store and the token service."""

    def __init__(self, users: UserStore, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    async def signup(self, signup_in: SignupRequest) -> tuple[User, TokenPair]:
        """
        Register a new account and issue its first token pair.

        Args:
            signup_in: Validated signup payload

        Returns:
            The created user and its token pair

        Raises:
            PasswordMismatchError: If password and confirmPassword differ
            DuplicateEmailError: If the email is already registered
        """
        # Checked before any store access
        if signup_in.password != signup_in.confirm_password:
            raise PasswordMismatchError()

        if await self.users.exists_by_email(signup_in.email):
            raise DuplicateEmailError()

        user = await self.users.create(signup_in)
        tokens = self.tokens.issue_token_pair(identity_for(user))

        logger.info("auth.user_signed_up", user_id=str(user.id))
        return user, tokens

    async def signin(self, email: str, password: str) -> tuple[User, TokenPair]:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        user = await self.users.find_by_email(email)
        if user is None or not self.users.compare_password(user, password):
            logger.info("auth.signin_failed", email_known=user is not None)
            raise InvalidCredentialsError()

        tokens = self.tokens.issue_token_pair(identity_for(user))

        logger.info("auth.user_signed_in", user_id=str(user.id))
        return user, tokens

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a token pair. See ``TokenService.refresh``."""
        tokens = await self.tokens.refresh(refresh_token, self.users)
        logger.debug("auth.tokens_refreshed")
        return tokens
