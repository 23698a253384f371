"""
JWT token creation / verification and password hashing (bcrypt).

Every token carries a ``type`` claim and each decoder accepts exactly one
kind, so a refresh or setup token can never be replayed as another kind.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from freightdesk.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
DRIVER_SETUP_TOKEN = "driver_setup"


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


def generate_unusable_password() -> str:
    """Random placeholder for accounts that have not chosen a password yet."""
    return secrets.token_urlsafe(24)


def generate_otp() -> str:
    """Six-digit numeric one-time code (never starts with 0)."""
    return str(100000 + secrets.randbelow(900000))


# ── JWT tokens ──────────────────────────────────────────────────────
def _encode(claims: dict[str, Any], expires_delta: timedelta) -> str:
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _decode(token: str, token_type: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type or not payload.get("sub"):
        return None
    return payload


def create_access_token(
    subject: str | Any,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    return _encode(
        {"sub": str(subject), "role": role, "type": ACCESS_TOKEN},
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(subject: str | Any, expires_delta: timedelta | None = None) -> str:
    return _encode(
        {"sub": str(subject), "type": REFRESH_TOKEN},
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def password_fingerprint(hashed_password: str) -> str:
    """Short digest of the stored hash; changes whenever the password does."""
    return hashlib.sha256(hashed_password.encode()).hexdigest()[:16]


def fingerprint_matches(payload: dict, hashed_password: str) -> bool:
    return hmac.compare_digest(str(payload.get("pwd", "")), password_fingerprint(hashed_password))


def create_setup_token(
    subject: str | Any,
    email: str,
    hashed_password: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Setup link bound to the current password hash, so it stops working once used."""
    return _encode(
        {
            "sub": str(subject),
            "email": email,
            "pwd": password_fingerprint(hashed_password),
            "type": DRIVER_SETUP_TOKEN,
        },
        expires_delta or timedelta(hours=settings.SETUP_TOKEN_EXPIRE_HOURS),
    )


def decode_access_token(token: str) -> dict | None:
    """Return payload dict if *access* token is valid, else ``None``."""
    return _decode(token, ACCESS_TOKEN)


def decode_refresh_token(token: str) -> dict | None:
    """Return payload dict if *refresh* token is valid, else ``None``."""
    return _decode(token, REFRESH_TOKEN)


def decode_setup_token(token: str) -> dict | None:
    """Return payload dict if *driver setup* token is valid, else ``None``."""
    return _decode(token, DRIVER_SETUP_TOKEN)
