"""
One-time codes for password reset (and reserved for driver setup).
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from freightdesk.core.config import settings
from freightdesk.db.base import Base


class OTPPurpose(str, enum.Enum):
    PASSWORD_RESET = "password_reset"
    DRIVER_SETUP = "driver_setup"


def _default_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)


class OTP(Base):
    __tablename__ = "otps"
    __table_args__ = (Index("ix_otps_email_code", "email", "code"),)

    id: int = Column(Integer, primary_key=True, autoincrement=True)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    code: str = Column(String(6), nullable=False)  # type: ignore[assignment]
    purpose: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    expires_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), nullable=False, default=_default_expiry, index=True
    )
    used: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
