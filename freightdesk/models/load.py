"""
Load model: freight jobs and their status machine.

``load_number`` is the human-facing alternate key (last 8 characters of the
id, upper-cased). It is written once at insert time and indexed so lookups
by load number never scan the table.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import (JSON, Column, Date, DateTime, Float, ForeignKey, Index,
                        Integer, String, Text)
from sqlalchemy.orm import relationship

from freightdesk.db.base import Base


class LoadStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    # Reserved: no operation moves a load into these yet.
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class ShippingType(str, enum.Enum):
    FTL = "FTL"
    LTL = "LTL"
    PARTIAL = "Partial"
    EXPEDITED = "Expedited"


PAYMENT_TERMS_DAYS = (30, 45, 60, 90, 120)

TRANSITIONS: frozenset[tuple[LoadStatus, LoadStatus]] = frozenset(
    {
        (LoadStatus.PENDING, LoadStatus.ACCEPTED),
        (LoadStatus.PENDING, LoadStatus.REJECTED),
        (LoadStatus.ACCEPTED, LoadStatus.COMPLETED),
    }
)

# A load in one of these states already has a driver working on it.
NON_REASSIGNABLE = frozenset({LoadStatus.ACCEPTED, LoadStatus.COMPLETED})


def can_transition(current: str | LoadStatus, target: LoadStatus) -> bool:
    return (LoadStatus(current), target) in TRANSITIONS


def sources_for(target: LoadStatus) -> list[LoadStatus]:
    """Every status from which *target* is reachable in one step."""
    return [src for src, dst in TRANSITIONS if dst is target]


def derive_load_number(load_id: str) -> str:
    return load_id[-8:].upper()


def compute_expected_payout(loading_date: date, payment_terms: int) -> date:
    return loading_date + timedelta(days=payment_terms)


class Load(Base):
    __tablename__ = "loads"
    __table_args__ = (
        Index("ix_loads_status_created_by", "status", "created_by_id"),
        Index("ix_loads_driver_status", "assigned_driver_id", "status"),
    )

    id: str = Column(String(32), primary_key=True)  # type: ignore[assignment]
    load_number: str = Column(String(8), nullable=False, index=True)  # type: ignore[assignment]

    pickup_location: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    dropoff_location: str = Column(String(300), nullable=False)  # type: ignore[assignment]

    client_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    client_price: float = Column(Float, nullable=False)  # type: ignore[assignment]
    driver_price: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]

    assigned_driver_id: str | None = Column(  # type: ignore[assignment]
        String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    shipping_type: str = Column(String(20), nullable=False, default=ShippingType.FTL.value)  # type: ignore[assignment]
    load_weight: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]
    pallets: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]

    loading_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    loading_time: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # HH:MM
    payment_terms: int = Column(Integer, nullable=False, default=45)  # type: ignore[assignment]
    expected_payout_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]

    fuel: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]
    tolls: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]
    other_expenses: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]

    status: str = Column(  # type: ignore[assignment]
        String(20), nullable=False, default=LoadStatus.PENDING.value
    )

    notes: str = Column(Text, nullable=False, default="")  # type: ignore[assignment]
    pod_image: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    invoices: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    documents: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    # Bumped by every driver-side write; guards read-modify-write updates.
    revision: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]

    created_by_id: str = Column(  # type: ignore[assignment]
        String(32), ForeignKey("users.id"), nullable=False
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    assigned_driver = relationship("User", foreign_keys=[assigned_driver_id], lazy="selectin")
