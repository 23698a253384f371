"""Pydantic schemas for JWT tokens and the auth flows."""

from __future__ import annotations

from pydantic import field_validator

from freightdesk.schemas.common import APIModel
from freightdesk.schemas.user import UserSummary, normalise_email


class LoginRequest(APIModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)


class TokenPair(APIModel):
    success: bool = True
    message: str | None = None
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserSummary


class AccessToken(APIModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"


class RefreshRequest(APIModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(APIModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)


class ResetPasswordRequest(APIModel):
    email: str
    otp: str
    new_password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("otp")
    @classmethod
    def _otp(cls, v: str) -> str:
        return v.strip()


class SetupPasswordRequest(APIModel):
    token: str
    password: str
