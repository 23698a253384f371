"""
API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from freightdesk.api.v1.endpoints import (auth, dashboard, loads, notifications,
                                          realtime, users)

api_router = APIRouter()

# Login, tokens, password reset / setup
api_router.include_router(auth.router)

# Driver management and profile
api_router.include_router(users.router)

# Loads and their status transitions
api_router.include_router(loads.router)

# Notifications (REST) and the WebSocket push channel
api_router.include_router(notifications.router)
api_router.include_router(realtime.router)

# Dashboards and health
api_router.include_router(dashboard.router)
