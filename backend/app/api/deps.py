"""FastAPI dependencies: service construction and the route guard.

Services are built here and injected with ``Depends`` so tests can swap any
of them through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.cookies import ACCESS_TOKEN_COOKIE, CookiePolicy
from app.core.database import get_db
from app.core.exceptions import TokenInvalidError
from app.crud.user import UserStore
from app.schemas.token import TokenIdentity
from app.services.auth_service import AuthService
from app.services.token_service import TokenService

logger = structlog.get_logger(__name__)

__all__ = [
    "get_db",
    "get_user_store",
    "get_token_service",
    "get_cookie_policy",
    "get_auth_service",
    "get_current_user",
    "CurrentUser",
]


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_settings(settings)


@lru_cache
def get_cookie_policy() -> CookiePolicy:
    return CookiePolicy.from_settings(settings)


def get_user_store(db: Annotated[AsyncSession, Depends(get_db)]) -> UserStore:
    return UserStore(db)


def get_auth_service(
    users: Annotated[UserStore, Depends(get_user_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(users=users, tokens=tokens)


async def get_current_user(
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenIdentity:
    """
    Route guard: authenticate the request from the access token cookie.

    The signed claim is trusted as-is; no database lookup happens here.

    Args:
        request: Incoming request
        tokens: Token service used for verification

    Returns:
        Identity from the access token, also stored on ``request.state.user``

    Raises:
        TokenInvalidError: If the cookie is missing or the token is invalid
        TokenExpiredError: If the access token has expired
    """
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not access_token:
        raise TokenInvalidError()

    identity = tokens.verify_access_token(access_token)
    request.state.user = identity
    structlog.contextvars.bind_contextvars(user_id=identity.id)
    return identity


CurrentUser = Annotated[TokenIdentity, Depends(get_current_user)]
