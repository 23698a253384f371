"""
Auth endpoints: login, token refresh, password reset and driver account setup.
"""

from fastapi import APIRouter, Cookie, Depends, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import get_current_user, get_db, get_language
from freightdesk.core.config import settings
from freightdesk.core.i18n import translate
from freightdesk.models.user import User
from freightdesk.schemas.common import MessageResponse
from freightdesk.schemas.token import (AccessToken, ForgotPasswordRequest,
                                       LoginRequest, RefreshRequest,
                                       ResetPasswordRequest, SetupPasswordRequest,
                                       TokenPair)
from freightdesk.schemas.user import UserEnvelope, UserRead, UserSummary
from freightdesk.services import auth as auth_service
from freightdesk.services.auth import IssuedTokens

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str | None = None) -> None:
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    if refresh_token is not None:
        response.set_cookie(
            key="refresh_token",
            value=refresh_token,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="lax",
            max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        )


def _token_pair(response: Response, issued: IssuedTokens, message: str | None = None) -> TokenPair:
    _set_auth_cookies(response, issued.access_token, issued.refresh_token)
    return TokenPair(
        message=message,
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        user=UserSummary.model_validate(issued.user),
    )


@router.post("/login", response_model=TokenPair)
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    lang: str = Depends(get_language),
) -> TokenPair:
    """Authenticate with email/password. Tokens are returned and set as HttpOnly cookies."""
    issued = await auth_service.login(db, body.email, body.password, lang)
    return _token_pair(response, issued)


@router.post("/refresh-token", response_model=AccessToken)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> AccessToken:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie
    access_token = await auth_service.refresh(db, token_str)
    _set_auth_cookies(response, access_token)
    return AccessToken(access_token=access_token)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    lang: str = Depends(get_language),
) -> MessageResponse:
    await auth_service.request_password_reset(db, body.email)
    return MessageResponse(message=translate("auth.otpSent", lang))


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    lang: str = Depends(get_language),
) -> MessageResponse:
    await auth_service.reset_password(db, body.email, body.otp, body.new_password)
    return MessageResponse(message=translate("auth.passwordReset", lang))


@router.post("/setup-password", response_model=TokenPair)
async def setup_password(
    response: Response,
    body: SetupPasswordRequest,
    db: AsyncSession = Depends(get_db),
    lang: str = Depends(get_language),
) -> TokenPair:
    """Driver sets their first password from the invitation link; logs them in."""
    issued = await auth_service.setup_password(db, body.token, body.password)
    return _token_pair(response, issued, translate("auth.passwordSet", lang))


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, lang: str = Depends(get_language)) -> MessageResponse:
    """Clear auth cookies and end the session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return MessageResponse(message=translate("auth.loggedOut", lang))


@router.get("/me", response_model=UserEnvelope)
async def read_current_user(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    """Return profile of the currently authenticated user."""
    return UserEnvelope(user=UserRead.model_validate(current_user))
