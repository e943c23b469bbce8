"""
WebSocket endpoint for real-time events.

A connection is authenticated once at handshake time with the same proxy
headers as the HTTP API (``?email=`` is also accepted in dev mode). It is
subscribed to the caller's personal room and to the chat group of every
project they are assigned to; clients can send ``{"action": "join"|"leave",
"room": ...}`` to manage further subscriptions.

Database work runs in the threadpool on short-lived sessions so a long-lived
socket never pins a connection or blocks the event loop.
"""
import json
import logging
import uuid
from typing import List, Optional, Tuple

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from projecthub.db import database
from projecthub.api.auth import get_or_create_user
from projecthub.api.deps import resolve_user
from projecthub.api.permissions import can_access_project
from projecthub.db.repositories import projects as project_repo
from projecthub.services.realtime import group_room, manager, user_room
from projecthub.utils.permissions import is_admin_role
from projecthub.utils.runtime import dev_mode_active

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _open_connection(email: Optional[str], headers) -> Optional[Tuple[uuid.UUID, bool, List[str]]]:
    """Resolve the caller and the rooms they start in: (user_id, is_admin, rooms)."""
    db = database.open_session()
    try:
        if email and dev_mode_active():
            user = get_or_create_user(db, email=email)
        else:
            user = resolve_user(
                db,
                x_auth_request_user=headers.get("x-auth-request-user"),
                x_auth_request_email=headers.get("x-auth-request-email"),
                x_forwarded_user=headers.get("x-forwarded-user"),
                x_forwarded_email=headers.get("x-forwarded-email"),
            )
        if user is None:
            return None
        rooms = [user_room(user.id)]
        rooms.extend(group_room(project.id) for _assignment, project in project_repo.get_user_assignments(db, user.id))
        return user.id, is_admin_role(user.role), rooms
    finally:
        db.close()


def _may_join(user_id: uuid.UUID, is_admin: bool, room: str) -> bool:
    if room == user_room(user_id):
        return True
    prefix = group_room("")
    if not room.startswith(prefix):
        return False
    try:
        project_id = uuid.UUID(room[len(prefix):])
    except ValueError:
        return False
    db = database.open_session()
    try:
        return can_access_project(db, project_id, {"id": user_id, "is_admin": is_admin})
    finally:
        db.close()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    try:
        identity = await run_in_threadpool(
            _open_connection, websocket.query_params.get("email"), websocket.headers
        )
    except (HTTPException, RuntimeError) as exc:
        logger.warning("ws_auth_failed: %s", exc)
        identity = None
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user_id, is_admin, rooms = identity

    await manager.connect(websocket)
    for room in rooms:
        manager.join(websocket, room)
    await websocket.send_json({"type": "connected", "data": {"user_id": str(user_id)}})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"type": "error", "data": {"detail": "Invalid message"}})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "data": {"detail": "Invalid message"}})
                continue

            action = message.get("action")
            room = message.get("room")
            if action not in ("join", "leave") or not isinstance(room, str) or not room:
                await websocket.send_json({"type": "error", "data": {"detail": "Invalid message"}})
                continue

            if action == "leave":
                manager.leave(websocket, room)
                await websocket.send_json({"type": "left", "data": {"room": room}})
            elif await run_in_threadpool(_may_join, user_id, is_admin, room):
                manager.join(websocket, room)
                await websocket.send_json({"type": "joined", "data": {"room": room}})
            else:
                await websocket.send_json({"type": "error", "data": {"detail": "Forbidden", "room": room}})
    except WebSocketDisconnect:
        logger.debug("ws_client_disconnected: user_id=%s", user_id)
    finally:
        manager.disconnect(websocket)
