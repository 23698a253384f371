"""
Driver management, profile edits and the first-manager bootstrap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.core.config import settings
from freightdesk.core.exceptions import DeliveryError, NotFoundError, ValidationError
from freightdesk.core.security import (create_setup_token, generate_unusable_password,
                                       get_password_hash)
from freightdesk.models.user import Role, User
from freightdesk.schemas.user import PASSWORD_PLACEHOLDER, DriverCreate, ProfileUpdate
from freightdesk.services import email as email_service
from freightdesk.services.auth import ensure_password_length, get_user_by_email

logger = logging.getLogger(__name__)


@dataclass
class DriverInvitation:
    driver: User
    email_sent: bool
    email_error: str | None = None

    @property
    def message(self) -> str:
        if self.email_sent:
            return "Driver created successfully. Invitation email sent."
        return "Driver created successfully. Email sending failed - please send invitation manually."


async def create_driver(db: AsyncSession, body: DriverCreate) -> DriverInvitation:
    """Create an inactive driver and send the password-setup invitation.

    The invitation is best effort: a mail failure is reported back to the
    manager, the account is kept.
    """
    if await get_user_by_email(db, body.email) is not None:
        raise ValidationError("User with this email already exists")

    driver = User(
        name=body.name,
        email=body.email,
        phone=body.phone,
        preferred_language=body.preferred_language,
        role=Role.DRIVER.value,
        is_active=False,
        hashed_password=get_password_hash(generate_unusable_password()),
    )
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    logger.info("Driver %s created", driver.id)

    token = create_setup_token(driver.id, driver.email, driver.hashed_password)
    try:
        await email_service.send_driver_invitation(driver.email, driver.name, token)
    except DeliveryError as exc:
        logger.warning("Invitation for driver %s not sent: %s", driver.id, exc.message)
        return DriverInvitation(driver=driver, email_sent=False, email_error=exc.message)
    return DriverInvitation(driver=driver, email_sent=True)


async def list_drivers(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User).where(User.role == Role.DRIVER.value).order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


async def get_driver(db: AsyncSession, driver_id: str) -> User:
    result = await db.execute(
        select(User).where(User.id == driver_id, User.role == Role.DRIVER.value)
    )
    driver = result.scalar_one_or_none()
    if driver is None:
        raise NotFoundError("Driver not found")
    return driver


async def toggle_driver_status(db: AsyncSession, driver_id: str) -> User:
    driver = await get_driver(db, driver_id)
    driver.is_active = not driver.is_active
    await db.commit()
    await db.refresh(driver)
    logger.info("Driver %s %s", driver.id, "activated" if driver.is_active else "deactivated")
    return driver


async def delete_driver(db: AsyncSession, driver_id: str) -> None:
    driver = await get_driver(db, driver_id)
    await db.delete(driver)
    await db.commit()
    logger.info("Driver %s deleted", driver_id)


async def update_profile(db: AsyncSession, user: User, body: ProfileUpdate) -> User:
    if body.email and body.email != user.email:
        if await get_user_by_email(db, body.email) is not None:
            raise ValidationError("Email already in use")
        user.email = body.email

    for field in ("name", "phone", "country", "avatar", "preferred_language"):
        value = getattr(body, field)
        if value:
            setattr(user, field, value.strip() if isinstance(value, str) else value)

    if body.password and body.password != PASSWORD_PLACEHOLDER:
        ensure_password_length(body.password)
        user.hashed_password = get_password_hash(body.password)

    await db.commit()
    await db.refresh(user)
    return user


async def ensure_first_manager(db: AsyncSession) -> User | None:
    """Create the bootstrap manager account if it does not exist yet."""
    if await get_user_by_email(db, settings.FIRST_MANAGER_EMAIL) is not None:
        return None
    manager = User(
        name=settings.FIRST_MANAGER_NAME,
        email=settings.FIRST_MANAGER_EMAIL.strip().lower(),
        phone=settings.FIRST_MANAGER_PHONE,
        role=Role.MANAGER.value,
        is_active=True,
        hashed_password=get_password_hash(settings.FIRST_MANAGER_PASSWORD),
    )
    db.add(manager)
    await db.commit()
    logger.info("Default manager created: %s (password: <redacted>)", manager.email)
    return manager
