"""
Notification CRUD: everything is scoped to the caller's own notifications.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.models.notification import NotificationType
from freightdesk.models.user import User
from freightdesk.services.notifications import NotificationDispatcher


async def _seed(db: AsyncSession, registry, user: User, count: int) -> list[str]:
    dispatcher = NotificationDispatcher(db, registry)
    ids = []
    for i in range(count):
        n = await dispatcher.dispatch(
            user.id, NotificationType.LOAD_ASSIGNED, f"Title {i}", f"Message {i}"
        )
        ids.append(n.id)
    return ids


@pytest.mark.asyncio
async def test_list_is_newest_first_and_limited(
    async_client: AsyncClient, db_session, registry, driver: User, driver_headers
):
    await _seed(db_session, registry, driver, 3)

    resp = await async_client.get("/api/notifications", headers=driver_headers)
    body = resp.json()
    assert resp.status_code == 200
    assert body["count"] == 3
    titles = [n["title"] for n in body["data"]]
    assert titles == ["Title 2", "Title 1", "Title 0"]
    assert body["data"][0]["read"] is False

    limited = await async_client.get("/api/notifications?limit=2", headers=driver_headers)
    assert limited.json()["count"] == 2


@pytest.mark.asyncio
async def test_users_only_see_their_own(
    async_client: AsyncClient, db_session, registry, driver: User, manager_headers
):
    await _seed(db_session, registry, driver, 2)
    resp = await async_client.get("/api/notifications", headers=manager_headers)
    assert resp.json()["count"] == 0


@pytest.mark.asyncio
async def test_unread_count_and_mark_read(
    async_client: AsyncClient, db_session, registry, driver: User, driver_headers
):
    first, _second = await _seed(db_session, registry, driver, 2)

    count = await async_client.get("/api/notifications/unread-count", headers=driver_headers)
    assert count.json()["count"] == 2

    resp = await async_client.patch(f"/api/notifications/{first}/read", headers=driver_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["read"] is True

    count = await async_client.get("/api/notifications/unread-count", headers=driver_headers)
    assert count.json()["count"] == 1


@pytest.mark.asyncio
async def test_mark_all_read(
    async_client: AsyncClient, db_session, registry, driver: User, driver_headers
):
    await _seed(db_session, registry, driver, 3)
    resp = await async_client.patch("/api/notifications/read-all", headers=driver_headers)
    assert resp.status_code == 200
    count = await async_client.get("/api/notifications/unread-count", headers=driver_headers)
    assert count.json()["count"] == 0


@pytest.mark.asyncio
async def test_foreign_notification_is_not_found(
    async_client: AsyncClient, db_session, registry, driver: User, other_driver_headers
):
    (notification_id,) = await _seed(db_session, registry, driver, 1)

    read = await async_client.patch(
        f"/api/notifications/{notification_id}/read", headers=other_driver_headers
    )
    delete = await async_client.delete(
        f"/api/notifications/{notification_id}", headers=other_driver_headers
    )
    assert read.status_code == delete.status_code == 404
    assert read.json()["message"] == "Notification not found"


@pytest.mark.asyncio
async def test_delete_notification(
    async_client: AsyncClient, db_session, registry, driver: User, driver_headers
):
    (notification_id,) = await _seed(db_session, registry, driver, 1)
    resp = await async_client.delete(f"/api/notifications/{notification_id}", headers=driver_headers)
    assert resp.status_code == 200
    listing = await async_client.get("/api/notifications", headers=driver_headers)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_notifications_require_auth(async_client: AsyncClient):
    assert (await async_client.get("/api/notifications")).status_code == 401
