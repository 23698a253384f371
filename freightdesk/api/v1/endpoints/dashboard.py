"""
Dashboard statistics per role, plus the public health check.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import get_db, get_language, require_driver, require_manager
from freightdesk.core.config import settings
from freightdesk.core.exceptions import InternalError
from freightdesk.core.i18n import translate
from freightdesk.models.user import User
from freightdesk.schemas.dashboard import (DriverDashboardResponse, HealthResponse,
                                           ManagerDashboardResponse)
from freightdesk.services import dashboard as dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/manager", response_model=ManagerDashboardResponse)
async def manager_dashboard(
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_manager),
) -> ManagerDashboardResponse:
    """Counts and income over the loads this manager created."""
    return ManagerDashboardResponse(
        dashboard=await dashboard_service.manager_dashboard(db, manager)
    )


@router.get("/dashboard/driver", response_model=DriverDashboardResponse)
async def driver_dashboard(
    db: AsyncSession = Depends(get_db),
    driver: User = Depends(require_driver),
) -> DriverDashboardResponse:
    """Counts and earnings over the loads assigned to this driver."""
    return DriverDashboardResponse(dashboard=await dashboard_service.driver_dashboard(db, driver))


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health(
    db: AsyncSession = Depends(get_db),
    lang: str = Depends(get_language),
) -> HealthResponse:
    """Public health check: database connectivity."""
    try:
        await db.execute(select(1))
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise InternalError(translate("health.databaseUnavailable", lang)) from e

    return HealthResponse(
        message=translate("health.ok", lang),
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
