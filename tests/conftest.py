"""
Shared test fixtures for the FreightDesk test suite.

Every test gets a fresh in-memory aiosqlite database, a fresh connection
registry and an in-memory email outbox.
"""

import os
import smtplib
from typing import AsyncGenerator

import pytest

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-freightdesk-suite"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from freightdesk.api.v1.deps import get_db
from freightdesk.core.security import create_access_token, get_password_hash
from freightdesk.db.base import Base
from freightdesk.main import app
from freightdesk.models.user import Role, User
from freightdesk.realtime.registry import ConnectionRegistry
from freightdesk.services import email as email_service

PASSWORD = "s3cret-pass"


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create all tables on a private in-memory engine and wire it into the app."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def registry() -> ConnectionRegistry:
    """Fresh connection registry installed on the app for this test."""
    app.state.registry = ConnectionRegistry()
    return app.state.registry


@pytest.fixture
async def async_client(session_factory, registry) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ── Email ───────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> list:
    """Capture outgoing messages instead of talking to an SMTP server."""
    sent: list = []
    monkeypatch.setattr(email_service, "_send_sync", sent.append)
    return sent


@pytest.fixture
def broken_smtp(monkeypatch) -> None:
    def _fail(_msg):
        raise smtplib.SMTPServerDisconnected("connection refused")

    monkeypatch.setattr(email_service, "_send_sync", _fail)


# ── Users ───────────────────────────────────────────────────────────
async def make_user(
    session: AsyncSession,
    email: str,
    role: Role,
    name: str = "Test User",
    is_active: bool = True,
    password: str = PASSWORD,
) -> User:
    user = User(
        name=name,
        email=email,
        phone="+30 210 0000000",
        role=role.value,
        is_active=is_active,
        hashed_password=get_password_hash(password),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
async def manager(db_session) -> User:
    return await make_user(db_session, "manager@example.com", Role.MANAGER, name="Maria Manager")


@pytest.fixture
async def driver(db_session) -> User:
    return await make_user(db_session, "driver@example.com", Role.DRIVER, name="Nikos Driver")


@pytest.fixture
async def other_driver(db_session) -> User:
    return await make_user(db_session, "other@example.com", Role.DRIVER, name="Eleni Driver")


@pytest.fixture
def manager_headers(manager) -> dict[str, str]:
    return auth_headers(manager)


@pytest.fixture
def driver_headers(driver) -> dict[str, str]:
    return auth_headers(driver)


@pytest.fixture
def other_driver_headers(other_driver) -> dict[str, str]:
    return auth_headers(other_driver)


# ── Loads ───────────────────────────────────────────────────────────
def load_payload(**overrides) -> dict:
    payload = {
        "pickupLocation": "Athens",
        "dropoffLocation": "Thessaloniki",
        "clientName": "Acme Foods",
        "clientPrice": 1200,
        "driverPrice": 800,
        "loadingDate": "2025-01-01",
        "loadingTime": "08:30",
        "paymentTerms": 30,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_load(async_client, manager_headers):
    """Factory: create a load through the API and return its JSON body."""

    async def _create(**overrides) -> dict:
        resp = await async_client.post(
            "/api/loads", json=load_payload(**overrides), headers=manager_headers
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["load"]

    return _create
