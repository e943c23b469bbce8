"""
Real-time event fan-out over WebSockets.

Connections join named rooms: ``user:<id>`` for personal events and
``group:<project_id>`` for project chat. Request handlers run in worker
threads, so they publish through ``emit`` which schedules delivery on the
server event loop; everything else is plain async.
"""
from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

EVENT_PROJECT_CREATED = "project-created"
EVENT_PROJECT_DELETED = "project-deleted"
EVENT_NOTIFICATION = "notification"
EVENT_MESSAGE = "message"


def user_room(user_id: Any) -> str:
    return f"user:{user_id}"


def group_room(project_id: Any) -> str:
    return f"group:{project_id}"


class ConnectionManager:
    """Tracks live sockets and the rooms each one has joined."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self.active_connections.add(websocket)
        logger.debug("ws_connect: connections=%d", len(self.active_connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)
        for room in list(self.rooms):
            members = self.rooms[room]
            members.discard(websocket)
            if not members:
                del self.rooms[room]
        logger.debug("ws_disconnect: connections=%d", len(self.active_connections))

    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms[room].add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]

    def has_listeners(self, room: str) -> bool:
        return bool(self.rooms.get(room))

    async def _send(self, websocket: WebSocket, message: Dict[str, Any]) -> None:
        if websocket.application_state != WebSocketState.CONNECTED:
            self.disconnect(websocket)
            return
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.warning("ws_send_failed: %r", exc)
            self.disconnect(websocket)

    async def broadcast_to_room(self, room: str, message: Dict[str, Any]) -> None:
        for websocket in list(self.rooms.get(room, ())):
            await self._send(websocket, message)

    async def broadcast_to_user(self, user_id: Any, message: Dict[str, Any]) -> None:
        await self.broadcast_to_room(user_room(user_id), message)

    async def broadcast(self, message: Dict[str, Any]) -> None:
        for websocket in list(self.active_connections):
            await self._send(websocket, message)

    def emit(self, room: Optional[str], event: str, payload: Dict[str, Any]) -> None:
        """Publish ``event`` to a room (or everyone when room is None) from sync code.

        No-op when nobody is connected.
        """
        if self._loop is None or self._loop.is_closed():
            return
        if room is None and not self.active_connections:
            return
        if room is not None and not self.has_listeners(room):
            return
        message = {"type": event, "data": jsonable_encoder(payload)}
        coro = self.broadcast(message) if room is None else self.broadcast_to_room(room, message)
        try:
            future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError as exc:
            coro.close()
            logger.warning("ws_emit_failed: event=%s room=%s error=%s", event, room, exc)
            return
        future.add_done_callback(_log_emit_failure)


def _log_emit_failure(future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("ws_emit_failed: %r", exc)


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return manager
