"""
Notification dispatch and per-user notification CRUD.

``dispatch`` always writes the row first; only then, and only if the
recipient currently holds a live connection, is the payload pushed. A
recipient who is offline reads it later from ``list_notifications``.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.core.config import settings
from freightdesk.core.exceptions import NotFoundError
from freightdesk.core.i18n import translate
from freightdesk.models.load import Load
from freightdesk.models.notification import Notification, NotificationType
from freightdesk.realtime.registry import ConnectionRegistry
from freightdesk.schemas.notification import NotificationRead

logger = logging.getLogger(__name__)

NOTIFICATION_EVENT = "notification"


def _load_params(load: Load, **extra: Any) -> dict[str, Any]:
    params = {
        "loadNumber": load.load_number,
        "pickup": load.pickup_location,
        "dropoff": load.dropoff_location,
    }
    params.update(extra)
    return params


class NotificationDispatcher:
    def __init__(self, db: AsyncSession, registry: ConnectionRegistry) -> None:
        self.db = db
        self.registry = registry

    async def dispatch(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        title_key: str | None = None,
        message_key: str | None = None,
        params: dict[str, Any] | None = None,
        load: Load | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=recipient_id,
            type=type.value,
            title=title,
            message=message,
            title_key=title_key,
            message_key=message_key,
            params=params or {},
            load_id=load.id if load is not None else None,
            load_number=load.load_number if load is not None else None,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)

        if self.registry.is_online(recipient_id):
            payload = NotificationRead.model_validate(notification).model_dump(
                mode="json", by_alias=True
            )
            try:
                await self.registry.emit_to_user(recipient_id, NOTIFICATION_EVENT, payload)
            except Exception as exc:
                logger.warning("Real-time push to %s failed: %s", recipient_id, exc)
        return notification

    async def _dispatch_rendered(
        self,
        recipient_id: str,
        type: NotificationType,
        title_key: str,
        message_key: str,
        params: dict[str, Any],
        load: Load,
    ) -> Notification:
        lang = settings.DEFAULT_LANGUAGE
        return await self.dispatch(
            recipient_id,
            type,
            title=translate(title_key, lang, params),
            message=translate(message_key, lang, params),
            title_key=title_key,
            message_key=message_key,
            params=params,
            load=load,
        )

    # ── Load events ─────────────────────────────────────────────────
    async def notify_load_assigned(self, driver_id: str, load: Load) -> Notification:
        return await self._dispatch_rendered(
            driver_id,
            NotificationType.LOAD_ASSIGNED,
            "notifications.loadAssigned",
            "notifications.loadAssignedToYou",
            _load_params(load),
            load,
        )

    async def notify_load_accepted(self, load: Load, driver_name: str) -> Notification:
        return await self._dispatch_rendered(
            load.created_by_id,
            NotificationType.LOAD_ACCEPTED,
            "notifications.loadAccepted",
            "notifications.driverAcceptedLoadDetails",
            _load_params(load, driverName=driver_name),
            load,
        )

    async def notify_load_rejected(self, load: Load, driver_name: str) -> Notification:
        return await self._dispatch_rendered(
            load.created_by_id,
            NotificationType.LOAD_REJECTED,
            "notifications.loadRejected",
            "notifications.driverRejectedLoadDetails",
            _load_params(load, driverName=driver_name),
            load,
        )

    async def notify_load_completed(self, load: Load, driver_name: str) -> Notification:
        return await self._dispatch_rendered(
            load.created_by_id,
            NotificationType.LOAD_COMPLETED,
            "notifications.loadCompleted",
            "notifications.driverCompletedLoadDetails",
            _load_params(load, driverName=driver_name),
            load,
        )

    async def notify_documents_uploaded(self, load: Load, driver_name: str) -> Notification:
        return await self._dispatch_rendered(
            load.created_by_id,
            NotificationType.DOCUMENTS_UPLOADED,
            "notifications.documentsUploaded",
            "notifications.driverUploadedDocumentsDetails",
            _load_params(load, driverName=driver_name),
            load,
        )


# ── Ownership-scoped CRUD ───────────────────────────────────────────
async def list_notifications(
    db: AsyncSession, user_id: str, limit: int | None = None
) -> list[Notification]:
    limit = limit or settings.NOTIFICATIONS_DEFAULT_LIMIT
    limit = max(1, min(limit, settings.NOTIFICATIONS_MAX_LIMIT))
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return int(result.scalar_one())


async def _get_owned(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


async def mark_read(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
    notification = await _get_owned(db, notification_id, user_id)
    notification.read = True
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, notification_id: str, user_id: str) -> None:
    notification = await _get_owned(db, notification_id, user_id)
    await db.delete(notification)
    await db.commit()
