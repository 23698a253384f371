"""Pydantic schemas for users (managers and drivers)."""

from __future__ import annotations

from datetime import datetime

from pydantic import field_validator

from freightdesk.models.user import Role
from freightdesk.schemas.common import APIModel

_VALID_LANGUAGES = {"en", "el"}

# Placeholder the profile screen submits when the password field is untouched.
PASSWORD_PLACEHOLDER = "••••••••••••"


def normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email address")
    return v


def _required_text(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} must not be empty")
    return v


class UserSummary(APIModel):
    id: str
    name: str
    email: str
    phone: str
    role: Role
    preferred_language: str


class UserRead(UserSummary):
    is_active: bool
    country: str
    avatar: str
    created_at: datetime | None


class UserBrief(APIModel):
    id: str
    name: str
    email: str


class DriverBrief(UserBrief):
    phone: str


class UserEnvelope(APIModel):
    success: bool = True
    message: str | None = None
    user: UserRead


class DriverCreate(APIModel):
    name: str
    email: str
    phone: str
    preferred_language: str = "en"

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = _required_text(v, "Name")
        if len(v) > 200:
            raise ValueError("Name must not exceed 200 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _required_text(v, "Phone")

    @field_validator("preferred_language")
    @classmethod
    def _language(cls, v: str) -> str:
        if v not in _VALID_LANGUAGES:
            raise ValueError(f"Language must be one of: {sorted(_VALID_LANGUAGES)}")
        return v


class DriverCreated(APIModel):
    success: bool = True
    message: str
    email_sent: bool
    email_error: str | None = None
    driver: UserRead


class DriverList(APIModel):
    success: bool = True
    count: int
    drivers: list[UserRead]


class DriverEnvelope(APIModel):
    success: bool = True
    message: str | None = None
    driver: UserRead


class ProfileUpdate(APIModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    avatar: str | None = None
    password: str | None = None
    preferred_language: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return normalise_email(v) if v is not None else None

    @field_validator("preferred_language")
    @classmethod
    def _language(cls, v: str | None) -> str | None:
        if v is not None and v not in _VALID_LANGUAGES:
            raise ValueError(f"Language must be one of: {sorted(_VALID_LANGUAGES)}")
        return v
