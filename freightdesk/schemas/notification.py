"""Pydantic schemas for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from freightdesk.models.notification import NotificationType
from freightdesk.schemas.common import APIModel


class NotificationRead(APIModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    title_key: str | None
    message_key: str | None
    params: dict[str, Any]
    load_id: str | None
    load_number: str | None
    read: bool
    created_at: datetime | None


class NotificationList(APIModel):
    success: bool = True
    count: int
    data: list[NotificationRead]


class NotificationEnvelope(APIModel):
    success: bool = True
    data: NotificationRead


class UnreadCount(APIModel):
    success: bool = True
    count: int
