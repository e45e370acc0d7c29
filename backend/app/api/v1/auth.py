"""Authentication endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.deps import CurrentUser, get_auth_service, get_cookie_policy
from app.core.cookies import REFRESH_TOKEN_COOKIE, CookiePolicy
from app.core.error_handlers import error_json_response
from app.core.exceptions import AppError, ErrorKind, InvalidRefreshTokenError
from app.core.rate_limit import auth_limit, auth_refresh_limit
from app.schemas.response import ApiResponse, MessageData
from app.schemas.user import AuthUser, CamelModel, SigninRequest, SignupRequest, UserPublic
from app.services import email_service
from app.services.auth_service import AuthService

router = APIRouter()
logger = structlog.get_logger()

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CookiePolicyDep = Annotated[CookiePolicy, Depends(get_cookie_policy)]


class SignupResult(CamelModel):
    user: UserPublic
    email_sent: bool
    note: str


class SigninResult(CamelModel):
    user: UserPublic


@router.post(
    "/signup",
    response_model=ApiResponse[SignupResult],
    status_code=status.HTTP_201_CREATED,
)
@auth_limit
async def signup(
    request: Request,
    response: Response,
    signup_in: SignupRequest,
    auth: AuthServiceDep,
    cookies: CookiePolicyDep,
) -> ApiResponse[SignupResult]:
    """
    Create an account and sign it in.

    Both token cookies are set on success. A welcome email is attempted but
    never fails the signup.

    Raises:
        PasswordMismatchError: If password and confirmPassword differ
        DuplicateEmailError: If the email is already registered
    """
    user, tokens = await auth.signup(signup_in)
    cookies.write_tokens(response, tokens)

    email_sent = await run_in_threadpool(email_service.send_signup_email, user.email, user.full_name)
    if not email_sent:
        logger.warning("auth.signup_email_failed", user_id=str(user.id))

    return ApiResponse(
        message="Account created successfully",
        data=SignupResult(
            user=UserPublic.model_validate(user),
            email_sent=email_sent,
            note=(
                "Welcome email sent"
                if email_sent
                else "Account created but welcome email could not be sent"
            ),
        ),
    )


@router.post("/signin", response_model=ApiResponse[SigninResult])
@auth_limit
async def signin(
    request: Request,
    response: Response,
    signin_in: SigninRequest,
    auth: AuthServiceDep,
    cookies: CookiePolicyDep,
) -> ApiResponse[SigninResult]:
    """
    Sign in with email and password.

    Raises:
        InvalidCredentialsError: If the email is unknown or the password is wrong
    """
    user, tokens = await auth.signin(signin_in.email, signin_in.password)
    cookies.write_tokens(response, tokens)

    return ApiResponse(
        message="Login successful",
        data=SigninResult(user=UserPublic.model_validate(user)),
    )


@router.post("/logout", response_model=ApiResponse[MessageData])
async def logout(
    response: Response,
    cookies: CookiePolicyDep,
) -> ApiResponse[MessageData]:
    """
    Clear both token cookies.

    Always succeeds, with or without a valid session. The tokens themselves
    stay valid until they expire.
    """
    cookies.clear_tokens(response)
    return ApiResponse(message="Logout successful", data=MessageData(message="Logout successful"))


@router.post("/refresh", response_model=ApiResponse[MessageData])
@auth_refresh_limit
async def refresh_tokens(
    request: Request,
    response: Response,
    auth: AuthServiceDep,
    cookies: CookiePolicyDep,
) -> ApiResponse[MessageData] | JSONResponse:
    """
    Rotate the token pair using the refresh token cookie.

    On any failure both cookies are cleared so the client has to sign in again.
    """
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)

    try:
        if not refresh_token:
            raise InvalidRefreshTokenError("Refresh token not found")
        tokens = await auth.refresh(refresh_token)
    except AppError as e:
        logger.info("auth.refresh_failed", kind=e.kind.value, reason=e.message)
        error_response = error_json_response(
            request,
            status_code=status.HTTP_401_UNAUTHORIZED,
            code=e.kind.value,
            message=e.message,
        )
        cookies.clear_tokens(error_response)
        return error_response
    except Exception as e:
        logger.error("auth.refresh_error", error=str(e), exc_info=e)
        error_response = error_json_response(
            request,
            status_code=status.HTTP_401_UNAUTHORIZED,
            code=ErrorKind.INVALID_REFRESH_TOKEN.value,
            message=InvalidRefreshTokenError.default_message,
        )
        cookies.clear_tokens(error_response)
        return error_response

    cookies.write_tokens(response, tokens)
    return ApiResponse(
        message="Tokens refreshed",
        data=MessageData(message="Tokens refreshed successfully"),
    )


@router.get("/me", response_model=ApiResponse[AuthUser])
async def get_current_user_info(current_user: CurrentUser) -> ApiResponse[AuthUser]:
    """Return the identity carried by the access token cookie."""
    return ApiResponse(
        message="Authenticated",
        data=AuthUser(id=current_user.id, email=current_user.email),
    )
