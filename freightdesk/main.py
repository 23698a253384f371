"""
FreightDesk application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `api/`, `services/`, `models/`, `realtime/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freightdesk.api.v1.api import api_router
from freightdesk.api.v1.endpoints.auth import limiter
from freightdesk.core.config import settings
from freightdesk.core.exceptions import register_exception_handlers
from freightdesk.db.base import Base
from freightdesk.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from freightdesk.models.load import Load  # noqa: F401
from freightdesk.models.notification import Notification  # noqa: F401
from freightdesk.models.otp import OTP  # noqa: F401
from freightdesk.models.user import User  # noqa: F401
from freightdesk.realtime.registry import ConnectionRegistry
from freightdesk.services.users import ensure_first_manager

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the first manager account on first run
    async with async_session_factory() as session:
        await ensure_first_manager(session)

    logger.info("FreightDesk v%s started", settings.VERSION)
    yield
    await app.state.registry.close_all()
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Freight load management for managers and drivers",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # One registry of live connections per application instance
    application.state.registry = ConnectionRegistry()
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)
    return application


app = create_app()
