"""
Notification endpoints, scoped to the caller's own notifications.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import get_current_user, get_db
from freightdesk.models.user import User
from freightdesk.schemas.common import MessageResponse
from freightdesk.schemas.notification import (NotificationEnvelope, NotificationList,
                                              NotificationRead, UnreadCount)
from freightdesk.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications(
    limit: Optional[int] = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationList:
    items = await notification_service.list_notifications(db, current_user.id, limit)
    return NotificationList(
        count=len(items), data=[NotificationRead.model_validate(n) for n in items]
    )


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCount:
    return UnreadCount(count=await notification_service.unread_count(db, current_user.id))


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    updated = await notification_service.mark_all_read(db, current_user.id)
    return MessageResponse(message=f"{updated} notification(s) marked as read")


@router.patch("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationEnvelope:
    notification = await notification_service.mark_read(db, notification_id, current_user.id)
    return NotificationEnvelope(data=NotificationRead.model_validate(notification))


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    await notification_service.delete_notification(db, notification_id, current_user.id)
    return MessageResponse(message="Notification deleted")
