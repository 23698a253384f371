"""
User endpoints: driver management (manager only) and own-profile edits.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import get_current_user, get_db, require_manager
from freightdesk.models.user import User
from freightdesk.schemas.common import MessageResponse
from freightdesk.schemas.user import (DriverCreate, DriverCreated, DriverEnvelope,
                                      DriverList, ProfileUpdate, UserEnvelope,
                                      UserRead)
from freightdesk.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=DriverCreated, status_code=201)
async def create_driver(
    body: DriverCreate,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> DriverCreated:
    """Create an inactive driver and email them a password-setup link."""
    invitation = await user_service.create_driver(db, body)
    return DriverCreated(
        message=invitation.message,
        email_sent=invitation.email_sent,
        email_error=invitation.email_error,
        driver=UserRead.model_validate(invitation.driver),
    )


@router.get("", response_model=DriverList)
async def list_drivers(
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> DriverList:
    drivers = await user_service.list_drivers(db)
    return DriverList(count=len(drivers), drivers=[UserRead.model_validate(d) for d in drivers])


# Declared before /{driver_id} so "profile" is never taken for an id.
@router.patch("/profile", response_model=UserEnvelope)
async def update_profile(
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserEnvelope:
    user = await user_service.update_profile(db, current_user, body)
    return UserEnvelope(message="Profile updated successfully", user=UserRead.model_validate(user))


@router.get("/{driver_id}", response_model=DriverEnvelope)
async def get_driver(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> DriverEnvelope:
    driver = await user_service.get_driver(db, driver_id)
    return DriverEnvelope(driver=UserRead.model_validate(driver))


@router.patch("/{driver_id}/status", response_model=DriverEnvelope)
async def toggle_driver_status(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> DriverEnvelope:
    driver = await user_service.toggle_driver_status(db, driver_id)
    state = "activated" if driver.is_active else "deactivated"
    return DriverEnvelope(
        message=f"Driver {state} successfully", driver=UserRead.model_validate(driver)
    )


@router.delete("/{driver_id}", response_model=MessageResponse)
async def delete_driver(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> MessageResponse:
    await user_service.delete_driver(db, driver_id)
    return MessageResponse(message="Driver deleted successfully")
