"""
FastAPI dependencies: database session, auth guards, and the real-time
registry / notification dispatcher.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any, Optional

from fastapi import Cookie, Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.core.exceptions import Forbidden, Unauthorized
from freightdesk.core.i18n import resolve_language
from freightdesk.core.security import decode_access_token
from freightdesk.db.session import async_session_factory
from freightdesk.models.user import Role, User
from freightdesk.realtime.registry import ConnectionRegistry
from freightdesk.services.notifications import NotificationDispatcher

# auto_error=False so a missing header can fall back to the cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def strip_bearer(value: str | None) -> str | None:
    if not value:
        return None
    if value.startswith("Bearer "):
        return value.split(" ", 1)[1].strip() or None
    return value


async def authenticate_token(db: AsyncSession, token: str | None) -> User:
    """Resolve an access token to an active user or raise ``Unauthorized``."""
    if not token:
        raise Unauthorized("Not authorized to access this route")
    payload = decode_access_token(token)
    if payload is None:
        raise Unauthorized("Not authorized, token failed")

    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("Your account has been deactivated")
    return user


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Bearer token from the Authorization header, else the HttpOnly cookie."""
    return await authenticate_token(db, token or strip_bearer(access_token))


def require_roles(*roles: Role) -> Callable[..., Coroutine[Any, Any, User]]:
    allowed = frozenset(roles)

    async def _guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role_enum not in allowed:
            raise Forbidden(f"User role '{current_user.role}' is not authorized to access this route")
        return current_user

    return _guard


require_manager = require_roles(Role.MANAGER)
require_driver = require_roles(Role.DRIVER)


# ── Real-time ───────────────────────────────────────────────────────
def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_dispatcher(
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_registry),
) -> NotificationDispatcher:
    return NotificationDispatcher(db, registry)


def get_language(accept_language: Optional[str] = Header(default=None)) -> str:
    return resolve_language(accept_language)
