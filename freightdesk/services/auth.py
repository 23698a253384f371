"""
Credential checks, token issuance and the password reset / setup flows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.core.config import settings
from freightdesk.core.exceptions import (AuthError, DeliveryError, InvalidTokenError,
                                         NotFoundError, ValidationError)
from freightdesk.core.i18n import translate
from freightdesk.core.security import (create_access_token, create_refresh_token,
                                       decode_refresh_token, decode_setup_token,
                                       fingerprint_matches, generate_otp, get_password_hash,
                                       verify_password)
from freightdesk.models.otp import OTP, OTPPurpose
from freightdesk.models.user import User
from freightdesk.services import email as email_service

logger = logging.getLogger(__name__)


@dataclass
class IssuedTokens:
    user: User
    access_token: str
    refresh_token: str


def issue_tokens(user: User) -> IssuedTokens:
    return IssuedTokens(
        user=user,
        access_token=create_access_token(user.id, user.role),
        refresh_token=create_refresh_token(user.id),
    )


def ensure_password_length(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


# ── Sessions ────────────────────────────────────────────────────────
async def login(db: AsyncSession, email: str, password: str, lang: str | None = None) -> IssuedTokens:
    """Verify credentials and issue an access/refresh pair.

    Unknown email and wrong password share one message so callers cannot
    find out which accounts exist.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise AuthError(translate("auth.invalidCredentials", lang))
    if not user.is_active:
        raise AuthError(translate("auth.accountDeactivated", lang))

    logger.info("User %s logged in", user.id)
    return issue_tokens(user)


async def refresh(db: AsyncSession, refresh_token: str | None) -> str:
    if not refresh_token:
        raise AuthError("Refresh token is required")
    payload = decode_refresh_token(refresh_token)
    if payload is None:
        raise AuthError("Invalid or expired refresh token")

    user = await get_user_by_id(db, payload["sub"])
    if user is None or not user.is_active:
        raise AuthError("User not found or inactive")
    return create_access_token(user.id, user.role)


# ── Password reset (OTP) ────────────────────────────────────────────
async def request_password_reset(db: AsyncSession, email: str) -> None:
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("No account found with this email")

    now = datetime.now(timezone.utc)
    await db.execute(delete(OTP).where(OTP.expires_at <= now))
    code = generate_otp()
    db.add(OTP(email=user.email, code=code, purpose=OTPPurpose.PASSWORD_RESET.value))
    await db.commit()

    try:
        await email_service.send_password_reset_otp(user.email, code, user.name)
    except DeliveryError as exc:
        raise DeliveryError("Failed to send OTP. Please try again.") from exc
    logger.info("Password reset code issued for user %s", user.id)


async def reset_password(db: AsyncSession, email: str, code: str, new_password: str) -> None:
    ensure_password_length(new_password)
    email = email.strip().lower()
    now = datetime.now(timezone.utc)

    # Claiming the code and checking it are one statement, so it works once.
    claimed = await db.execute(
        update(OTP)
        .where(
            OTP.email == email,
            OTP.code == code,
            OTP.purpose == OTPPurpose.PASSWORD_RESET.value,
            OTP.used.is_(False),
            OTP.expires_at > now,
        )
        .values(used=True)
        .execution_options(synchronize_session=False)
    )
    if not claimed.rowcount:
        await db.rollback()
        raise InvalidTokenError("Invalid or expired OTP")

    user = await get_user_by_email(db, email)
    if user is None:
        await db.rollback()
        raise NotFoundError("User not found")

    user.hashed_password = get_password_hash(new_password)
    await db.commit()
    logger.info("Password reset for user %s", user.id)


# ── Driver account setup ────────────────────────────────────────────
async def setup_password(db: AsyncSession, token: str, password: str) -> IssuedTokens:
    ensure_password_length(password)
    payload = decode_setup_token(token)
    if payload is None:
        raise InvalidTokenError("Invalid or expired token")

    user = await get_user_by_id(db, payload["sub"])
    if user is None:
        raise NotFoundError("User not found")
    if not fingerprint_matches(payload, user.hashed_password):
        raise InvalidTokenError("Invalid or expired token")

    user.hashed_password = get_password_hash(password)
    user.is_active = True
    await db.commit()
    await db.refresh(user)
    logger.info("Driver %s completed account setup", user.id)
    return issue_tokens(user)
