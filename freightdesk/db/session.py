"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) gets a sized connection pool; SQLite (aiosqlite, used
for local runs and tests) gets the thread-check disabled instead.
"""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from freightdesk.core.config import settings


def _engine_options(database_url: str) -> dict:
    options: dict = {"echo": settings.DB_ECHO}
    backend = make_url(database_url).get_backend_name()
    if backend == "postgresql":
        options.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
        )
    elif backend == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Objects stay usable after commit; services re-read explicitly when they need fresh state.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
