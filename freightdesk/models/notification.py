"""
Notification model: durable record of every event pushed to a user.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Index,
                        String, Text)

from freightdesk.db.base import Base, new_id


class NotificationType(str, enum.Enum):
    LOAD_CREATED = "load_created"
    LOAD_ASSIGNED = "load_assigned"
    LOAD_ACCEPTED = "load_accepted"
    LOAD_REJECTED = "load_rejected"
    LOAD_COMPLETED = "load_completed"
    LOAD_CANCELLED = "load_cancelled"
    DOCUMENTS_UPLOADED = "documents_uploaded"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read_created", "user_id", "read", "created_at"),)

    id: str = Column(String(32), primary_key=True, default=new_id)  # type: ignore[assignment]
    user_id: str = Column(  # type: ignore[assignment]
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    message: str = Column(Text, nullable=False)  # type: ignore[assignment]
    # Translation keys + params let clients re-render in their own language.
    title_key: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    message_key: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    params: dict = Column(JSON, nullable=False, default=dict)  # type: ignore[assignment]
    load_id: str | None = Column(  # type: ignore[assignment]
        String(32), ForeignKey("loads.id", ondelete="SET NULL"), nullable=True
    )
    load_number: str | None = Column(String(8), nullable=True)  # type: ignore[assignment]
    read: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
