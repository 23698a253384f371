"""
User model: identity store for managers and drivers.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, String

from freightdesk.db.base import Base, new_id


class Role(str, enum.Enum):
    MANAGER = "manager"
    DRIVER = "driver"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role_active", "role", "is_active"),)

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    # Always stored lower-cased; lookups normalise before comparing.
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    phone: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=Role.DRIVER.value,
    )  # manager | driver
    is_active: bool = Column(Boolean, default=True, nullable=False)  # type: ignore[assignment]
    preferred_language: str = Column(String(5), nullable=False, default="en")  # type: ignore[assignment]
    country: str = Column(String(100), nullable=False, default="Greece")  # type: ignore[assignment]
    avatar: str = Column(String, nullable=False, default="")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def role_enum(self) -> Role:
        return Role(self.role)
