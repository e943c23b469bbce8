from datetime import datetime, timedelta, UTC

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from projecthub.api.main import app
from projecthub.db import database as db_module
from projecthub.db import models
from projecthub.services.notification_service import NotificationService
from projecthub.services.realtime import group_room, user_room


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "projecthub-service"}


def test_guest_writes_are_rejected(client):
    response = client.post("/api/clients", json={"name": "Globex"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Guest mode is read-only. Sign in to perform changes."


def test_user_info(client, headers, developer):
    body = client.get("/user-info", headers=headers(developer)).json()
    assert body["authenticated"] is True
    assert body["email"] == "dev@example.com"
    assert body["role"] == "developer"
    assert body["is_admin"] is False
    assert "CAN_MANAGE_TASKS" in body["permissions"]
    assert body["focus"] == "Execution and task completion"
    assert body["dev_mode"] is False


def test_user_info_dev_mode(client, monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    body = client.get("/user-info").json()
    assert body["email"] == "dev@localhost"
    assert body["dev_mode"] is True


def test_user_info_dev_mode_misconfigured(client, monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://hub.example.com")
    response = client.get("/user-info")
    assert response.status_code == 500
    assert response.json()["detail"] == "DEV_MODE misconfigured"



def test_startup_seeds_columns_and_purges_expired_notifications(db, headers, developer):
    service = NotificationService(db)
    stale = service.create_notification(developer.id, "test_notification", "Old", "old")
    stale.expires_at = datetime.now(UTC) - timedelta(days=1)
    db.commit()
    service.create_notification(developer.id, "test_notification", "New", "new")

    with TestClient(app) as started:
        columns = started.get("/api/columns", headers=headers(developer)).json()

    assert [c["title"] for c in columns] == ["To Do", "In Progress", "Complete"]
    assert all(c["is_default"] for c in columns)
    db.expire_all()
    assert [n.title for n in db.query(models.Notification).all()] == ["New"]

# WebSocket

def test_websocket_rejects_anonymous(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
    assert exc.value.code == 1008


def test_websocket_rooms(client, headers, developer, project_factory):
    mine = project_factory("Apollo", members=[developer])
    other = project_factory("Gemini")

    with client.websocket_connect("/ws", headers=headers(developer)) as ws:
        assert ws.receive_json() == {"type": "connected", "data": {"user_id": str(developer.id)}}

        ws.send_json({"action": "join", "room": group_room(other.id)})
        assert ws.receive_json() == {"type": "error", "data": {"detail": "Forbidden", "room": group_room(other.id)}}

        ws.send_json({"action": "leave", "room": group_room(mine.id)})
        assert ws.receive_json() == {"type": "left", "data": {"room": group_room(mine.id)}}

        ws.send_json({"action": "join", "room": group_room(mine.id)})
        assert ws.receive_json() == {"type": "joined", "data": {"room": group_room(mine.id)}}

        ws.send_json({"action": "join", "room": user_room("someone-else")})
        assert ws.receive_json()["data"]["detail"] == "Forbidden"

        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "data": {"detail": "Invalid message"}}


def test_websocket_dev_mode_email(client, monkeypatch, developer):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    with client.websocket_connect("/ws?email=dev@example.com") as ws:
        assert ws.receive_json()["data"]["user_id"] == str(developer.id)


def test_websocket_sessions_are_closed_before_receive_loop(client, monkeypatch, headers, developer, project_factory):
    project = project_factory("Apollo", members=[developer])
    opened, closed = [], []
    real_open = db_module.open_session

    def tracking_open():
        session = real_open()
        opened.append(session)
        real_close = session.close

        def close():
            closed.append(session)
            real_close()

        session.close = close
        return session

    monkeypatch.setattr(db_module, "open_session", tracking_open)

    with client.websocket_connect("/ws", headers=headers(developer)) as ws:
        ws.receive_json()
        assert len(opened) == 1
        assert closed == opened

        ws.send_json({"action": "join", "room": group_room(project.id)})
        assert ws.receive_json()["type"] == "joined"
        assert len(opened) == 2
        assert closed == opened


def test_chat_message_is_pushed_to_members(client, headers, developer, user_factory, project_factory):
    tess = user_factory("tess@example.com", role="tester", name="Tess")
    project = project_factory("Apollo", members=[developer, tess])

    with client.websocket_connect("/ws", headers=headers(developer)) as ws:
        ws.receive_json()
        response = client.post(
            "/api/chat/messages",
            json={"project_id": str(project.id), "content": "Standup in 5"},
            headers=headers(tess),
        )
        assert response.status_code == 201
        event = ws.receive_json()
        assert event["type"] == "message"
        assert event["data"]["content"] == "Standup in 5"
        assert event["data"]["sender_name"] == "Tess"
