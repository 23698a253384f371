"""
Real-time channel: authenticated WebSocket that receives pushed notifications.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from freightdesk.api.v1.deps import authenticate_token, get_db, strip_bearer
from freightdesk.core.exceptions import Unauthorized
from freightdesk.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Token via ``?token=`` or the Authorization header; bad tokens are refused."""
    raw = token or strip_bearer(websocket.headers.get("authorization"))
    try:
        user = await authenticate_token(db, raw)
    except Unauthorized as exc:
        logger.info("Real-time connection refused: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user_id, role = user.id, user.role
    # The session is not needed for the lifetime of the socket.
    await db.close()

    registry: ConnectionRegistry = websocket.app.state.registry
    await websocket.accept()
    connection_id = await registry.connect(websocket, user_id, role)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await registry.disconnect(connection_id)
