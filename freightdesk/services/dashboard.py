"""Per-role load statistics, each computed with one grouped query."""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from freightdesk.models.load import Load, LoadStatus
from freightdesk.models.user import User
from freightdesk.schemas.dashboard import DriverDashboard, ManagerDashboard


async def _totals_by_status(
    db: AsyncSession, owner_filter: ColumnElement[bool], amount: ColumnElement[float]
) -> tuple[dict[str, int], dict[str, float]]:
    """``(count per status, sum of *amount* per status)`` for matching loads."""
    result = await db.execute(
        select(Load.status, func.count(Load.id), func.coalesce(func.sum(amount), 0))
        .where(owner_filter)
        .group_by(Load.status)
    )
    counts: dict[str, int] = defaultdict(int)
    sums: dict[str, float] = defaultdict(float)
    for status, count, total in result.all():
        counts[status] = int(count)
        sums[status] = float(total)
    return counts, sums


async def manager_dashboard(db: AsyncSession, manager: User) -> ManagerDashboard:
    counts, income = await _totals_by_status(
        db, Load.created_by_id == manager.id, Load.client_price
    )
    return ManagerDashboard(
        total_loads=sum(counts.values()),
        pending_loads=counts[LoadStatus.PENDING.value],
        accepted_loads=counts[LoadStatus.ACCEPTED.value],
        completed_loads=counts[LoadStatus.COMPLETED.value],
        rejected_loads=counts[LoadStatus.REJECTED.value],
        total_income=income[LoadStatus.COMPLETED.value],
        pending_payments=income[LoadStatus.ACCEPTED.value],
    )


async def driver_dashboard(db: AsyncSession, driver: User) -> DriverDashboard:
    counts, earnings = await _totals_by_status(
        db, Load.assigned_driver_id == driver.id, Load.driver_price
    )
    return DriverDashboard(
        assigned_loads=counts[LoadStatus.PENDING.value],
        accepted_loads=counts[LoadStatus.ACCEPTED.value],
        completed_loads=counts[LoadStatus.COMPLETED.value],
        rejected_loads=counts[LoadStatus.REJECTED.value],
        total_earnings=earnings[LoadStatus.COMPLETED.value],
        pending_earnings=earnings[LoadStatus.ACCEPTED.value],
    )
