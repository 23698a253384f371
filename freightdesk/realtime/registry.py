"""
In-process registry of live real-time connections.

One registry is built per application instance and lives on ``app.state``.
A user may hold several connections at once (one per device); each
connection joins two broadcast groups, ``user:<id>`` and ``role:<role>``.
The registry only knows about connections in *this* process.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


def user_group(user_id: str) -> str:
    return f"user:{user_id}"


def role_group(role: str) -> str:
    return f"role:{role}"


class ConnectionRegistry:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._connections: dict[str, Connection] = {}
        self._owners: dict[str, tuple[str, str]] = {}
        self._user_connections: dict[str, set[str]] = {}
        self._groups: dict[str, set[str]] = {}

    # ── Membership ──────────────────────────────────────────────────
    async def connect(self, connection: Connection, user_id: str, role: str) -> str:
        """Register an authenticated connection and return its id."""
        connection_id = uuid.uuid4().hex
        async with self._lock:
            self._connections[connection_id] = connection
            self._owners[connection_id] = (user_id, role)
            self._user_connections.setdefault(user_id, set()).add(connection_id)
            for group in (user_group(user_id), role_group(role)):
                self._groups.setdefault(group, set()).add(connection_id)
        logger.info("User %s connected (%s)", user_id, connection_id)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            owner = self._owners.pop(connection_id, None)
            self._connections.pop(connection_id, None)
            if owner is None:
                return
            user_id, role = owner
            sockets = self._user_connections.get(user_id)
            if sockets is not None:
                sockets.discard(connection_id)
                if not sockets:
                    del self._user_connections[user_id]
            for group in (user_group(user_id), role_group(role)):
                members = self._groups.get(group)
                if members is not None:
                    members.discard(connection_id)
                    if not members:
                        del self._groups[group]
        logger.info("User %s disconnected (%s)", user_id, connection_id)

    def is_online(self, user_id: str) -> bool:
        """True while the user holds at least one live connection."""
        return str(user_id) in self._user_connections

    def connection_count(self, user_id: str) -> int:
        return len(self._user_connections.get(str(user_id), ()))

    @property
    def online_users(self) -> int:
        return len(self._user_connections)

    # ── Delivery ────────────────────────────────────────────────────
    async def emit(self, group: str, event: str, data: Any) -> int:
        """Send ``{"event", "data"}`` to every connection in *group*.

        Returns how many connections accepted the frame. A failing
        connection is logged and skipped; nothing is retried.
        """
        async with self._lock:
            targets = [
                (cid, self._connections[cid])
                for cid in self._groups.get(group, ())
                if cid in self._connections
            ]
        delivered = 0
        for connection_id, connection in targets:
            try:
                await connection.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as exc:
                logger.warning("Push to %s failed: %s", connection_id, exc)
        return delivered

    async def emit_to_user(self, user_id: str, event: str, data: Any) -> int:
        return await self.emit(user_group(str(user_id)), event, data)

    async def close_all(self) -> None:
        """Close every connection (application shutdown)."""
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            self._owners.clear()
            self._user_connections.clear()
            self._groups.clear()
        for connection in connections:
            try:
                await connection.close(code=1001)
            except Exception as exc:
                logger.warning("Error closing connection on shutdown: %s", exc)
        if connections:
            logger.info("Closed %d real-time connection(s)", len(connections))
