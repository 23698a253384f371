"""
Dashboard aggregates and the health endpoint.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from freightdesk.api.v1.deps import get_db
from freightdesk.main import app
from freightdesk.models.load import Load, LoadStatus
from freightdesk.models.user import User


async def _set_status(db, load_id: str, status: LoadStatus) -> None:
    await db.execute(update(Load).where(Load.id == load_id).values(status=status.value))
    await db.commit()


@pytest.mark.asyncio
async def test_manager_dashboard(async_client: AsyncClient, create_load, db_session, manager_headers):
    done = await create_load(clientPrice=1000)
    running = await create_load(clientPrice=400)
    await create_load(clientPrice=250)
    await _set_status(db_session, done["id"], LoadStatus.COMPLETED)
    await _set_status(db_session, running["id"], LoadStatus.ACCEPTED)

    resp = await async_client.get("/api/dashboard/manager", headers=manager_headers)
    assert resp.status_code == 200
    assert resp.json()["dashboard"] == {
        "totalLoads": 3,
        "pendingLoads": 1,
        "acceptedLoads": 1,
        "completedLoads": 1,
        "rejectedLoads": 0,
        "totalIncome": 1000.0,
        "pendingPayments": 400.0,
    }


@pytest.mark.asyncio
async def test_driver_dashboard(
    async_client: AsyncClient, create_load, db_session, driver: User, driver_headers
):
    done = await create_load(driverId=driver.id, driverPrice=700)
    await create_load(driverId=driver.id, driverPrice=300)
    rejected = await create_load(driverId=driver.id, driverPrice=100)
    await create_load(driverPrice=999)
    await _set_status(db_session, done["id"], LoadStatus.COMPLETED)
    await _set_status(db_session, rejected["id"], LoadStatus.REJECTED)

    resp = await async_client.get("/api/dashboard/driver", headers=driver_headers)
    assert resp.json()["dashboard"] == {
        "assignedLoads": 1,
        "acceptedLoads": 0,
        "completedLoads": 1,
        "rejectedLoads": 1,
        "totalEarnings": 700.0,
        "pendingEarnings": 0.0,
    }


@pytest.mark.asyncio
async def test_dashboards_are_role_gated(async_client: AsyncClient, manager_headers, driver_headers):
    assert (await async_client.get("/api/dashboard/driver", headers=manager_headers)).status_code == 403
    assert (await async_client.get("/api/dashboard/manager", headers=driver_headers)).status_code == 403


@pytest.mark.asyncio
async def test_empty_dashboard_is_zero(async_client: AsyncClient, manager_headers):
    resp = await async_client.get("/api/dashboard/manager", headers=manager_headers)
    dashboard = resp.json()["dashboard"]
    assert dashboard["totalLoads"] == 0
    assert dashboard["totalIncome"] == 0.0


@pytest.mark.asyncio
async def test_health_is_public(async_client: AsyncClient):
    resp = await async_client.get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["database"] is True
    assert "onlineUsers" not in body
    assert body["message"] == "Server is healthy"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(async_client: AsyncClient):
    resp = await async_client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


class _UnreachableDatabase:
    async def execute(self, *_args, **_kwargs):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


@pytest.mark.asyncio
async def test_health_reports_database_outage(async_client: AsyncClient):
    async def _broken_db():
        yield _UnreachableDatabase()

    app.dependency_overrides[get_db] = _broken_db
    resp = await async_client.get("/api/health")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Database unavailable"}
