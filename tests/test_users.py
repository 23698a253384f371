"""
Driver management and profile tests.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import PASSWORD
from freightdesk.core.config import settings
from freightdesk.core.security import decode_setup_token, verify_password
from freightdesk.models.user import User
from freightdesk.schemas.user import PASSWORD_PLACEHOLDER
from freightdesk.services.users import ensure_first_manager

DRIVER_BODY = {"name": "Kostas Papadopoulos", "email": "Kostas@Example.com", "phone": "+30 690 0000000"}


@pytest.mark.asyncio
async def test_create_driver_sends_setup_invitation(
    async_client: AsyncClient, manager_headers, outbox: list, db_session: AsyncSession
):
    resp = await async_client.post("/api/users", json=DRIVER_BODY, headers=manager_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["emailSent"] is True
    assert body["emailError"] is None
    assert body["driver"]["email"] == "kostas@example.com"
    assert body["driver"]["role"] == "driver"
    assert body["driver"]["isActive"] is False

    assert len(outbox) == 1
    text = outbox[0].get_body(preferencelist=("plain",)).get_content()
    token = text.split("token=", 1)[1].split()[0]
    payload = decode_setup_token(token)
    assert payload["sub"] == body["driver"]["id"]
    assert payload["email"] == "kostas@example.com"


@pytest.mark.asyncio
async def test_create_driver_survives_mail_failure(
    async_client: AsyncClient, manager_headers, broken_smtp
):
    resp = await async_client.post("/api/users", json=DRIVER_BODY, headers=manager_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["emailSent"] is False
    assert body["emailError"]
    assert "send invitation manually" in body["message"]


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected(
    async_client: AsyncClient, manager_headers, driver: User
):
    resp = await async_client.post(
        "/api/users", json={**DRIVER_BODY, "email": driver.email.upper()}, headers=manager_headers
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "User with this email already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["name", "email", "phone"])
async def test_create_driver_requires_fields(async_client: AsyncClient, manager_headers, missing):
    body = {k: v for k, v in DRIVER_BODY.items() if k != missing}
    resp = await async_client.post("/api/users", json=body, headers=manager_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_driver_management_is_manager_only(async_client: AsyncClient, driver_headers):
    assert (await async_client.get("/api/users", headers=driver_headers)).status_code == 403
    resp = await async_client.post("/api/users", json=DRIVER_BODY, headers=driver_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_get_toggle_delete_driver(
    async_client: AsyncClient, manager_headers, driver: User, manager: User
):
    listing = await async_client.get("/api/users", headers=manager_headers)
    assert listing.json()["count"] == 1
    assert listing.json()["drivers"][0]["id"] == driver.id

    one = await async_client.get(f"/api/users/{driver.id}", headers=manager_headers)
    assert one.json()["driver"]["name"] == driver.name

    not_driver = await async_client.get(f"/api/users/{manager.id}", headers=manager_headers)
    assert not_driver.status_code == 404

    toggled = await async_client.patch(f"/api/users/{driver.id}/status", headers=manager_headers)
    assert toggled.json()["driver"]["isActive"] is False
    assert toggled.json()["message"] == "Driver deactivated successfully"

    deleted = await async_client.delete(f"/api/users/{driver.id}", headers=manager_headers)
    assert deleted.status_code == 200
    gone = await async_client.get(f"/api/users/{driver.id}", headers=manager_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_update_profile(
    async_client: AsyncClient, db_session: AsyncSession, driver: User, driver_headers
):
    resp = await async_client.patch(
        "/api/users/profile",
        json={"name": "Nikos K.", "country": "Cyprus", "password": PASSWORD_PLACEHOLDER},
        headers=driver_headers,
    )
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["name"] == "Nikos K."
    assert user["country"] == "Cyprus"

    await db_session.refresh(driver)
    assert verify_password(PASSWORD, driver.hashed_password)


@pytest.mark.asyncio
async def test_update_profile_password_and_email(
    async_client: AsyncClient, db_session: AsyncSession, driver: User, manager: User, driver_headers
):
    taken = await async_client.patch(
        "/api/users/profile", json={"email": manager.email}, headers=driver_headers
    )
    assert taken.status_code == 400
    assert taken.json()["message"] == "Email already in use"

    short = await async_client.patch(
        "/api/users/profile", json={"password": "short"}, headers=driver_headers
    )
    assert short.status_code == 400

    ok = await async_client.patch(
        "/api/users/profile",
        json={"email": "nikos@example.com", "password": "another-pass"},
        headers=driver_headers,
    )
    assert ok.status_code == 200
    await db_session.refresh(driver)
    assert driver.email == "nikos@example.com"
    assert verify_password("another-pass", driver.hashed_password)


@pytest.mark.asyncio
async def test_first_manager_is_seeded_once(db_session: AsyncSession):
    created = await ensure_first_manager(db_session)
    assert created is not None
    assert created.role == "manager" and created.is_active
    assert await ensure_first_manager(db_session) is None

    result = await db_session.execute(
        select(User).where(User.email == settings.FIRST_MANAGER_EMAIL)
    )
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_invitation_escapes_driver_name(
    async_client: AsyncClient, manager_headers, outbox: list
):
    body = {**DRIVER_BODY, "name": '<a href="https://evil.example">Kostas</a>'}
    resp = await async_client.post("/api/users", json=body, headers=manager_headers)
    assert resp.status_code == 201

    html = outbox[0].get_body(preferencelist=("html",)).get_content()
    assert '<a href="https://evil.example">' not in html
    assert "&lt;a href=&quot;https://evil.example&quot;&gt;Kostas&lt;/a&gt;" in html
