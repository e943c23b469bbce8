import pytest

from projecthub.services.notification_service import NotificationService


@pytest.fixture
def seeded(db, developer):
    service = NotificationService(db, slack_webhook_url="")
    return [
        service.create_notification(developer.id, "test_notification", f"Note {i}", "body")
        for i in range(3)
    ]


def test_list_and_unread_count(client, headers, developer, seeded):
    body = client.get("/api/notifications", headers=headers(developer)).json()
    assert body["unread_count"] == 3
    assert body["total_count"] == 3
    assert len(body["notifications"]) == 3

    limited = client.get("/api/notifications", params={"limit": 2}, headers=headers(developer)).json()
    assert len(limited["notifications"]) == 2
    assert client.get("/api/notifications/unread-count", headers=headers(developer)).json() == {"count": 3}


def test_mark_read(client, headers, developer, user_factory, seeded):
    one = client.post("/api/notifications/read", json={"notification_id": str(seeded[0].id)}, headers=headers(developer))
    assert one.json() == {"success": True, "updated": 1}

    unread = client.get("/api/notifications", params={"unread_only": True}, headers=headers(developer)).json()
    assert len(unread["notifications"]) == 2

    stranger = user_factory("s@example.com")
    foreign = client.post("/api/notifications/read", json={"notification_id": str(seeded[1].id)}, headers=headers(stranger))
    assert foreign.status_code == 404

    empty = client.post("/api/notifications/read", json={}, headers=headers(developer))
    assert empty.status_code == 400

    everything = client.post("/api/notifications/read", json={"mark_all": True}, headers=headers(developer))
    assert everything.json() == {"success": True, "updated": 2}


def test_preferences(client, headers, admin_user, developer):
    defaults = client.get("/api/notifications/preferences", headers=headers(developer)).json()
    assert all(defaults.values())

    push = client.patch("/api/notifications/preferences", json={"push_enabled": False}, headers=headers(developer))
    assert push.status_code == 200
    assert push.json()["push_enabled"] is False

    email = client.patch("/api/notifications/preferences", json={"email_enabled": False}, headers=headers(developer))
    assert email.status_code == 403

    admin = client.patch(
        "/api/notifications/preferences",
        json={"email_enabled": False, "eod_notifications": False},
        headers=headers(admin_user),
    )
    assert admin.json()["email_enabled"] is False
    assert admin.json()["eod_notifications"] is False
    assert admin.json()["memo_notifications"] is True


def test_send_test_notification(client, headers, developer):
    response = client.post("/api/notifications/test", headers=headers(developer))
    body = response.json()
    assert body["success"] is True
    assert len(body["notification_ids"]) == 1
    assert body["emails"] == 1
    assert body["slack"] is False
    assert body["push"] == 0


def test_recipients_crud(client, headers, admin_user, developer):
    assert client.get("/api/notifications/recipients", headers=headers(developer)).status_code == 403

    created = client.post(
        "/api/notifications/recipients",
        json={"email": " PM@Client.test ", "label": "  "},
        headers=headers(admin_user),
    )
    assert created.status_code == 201
    recipient = created.json()
    assert recipient["email"] == "pm@client.test"
    assert recipient["label"] == "External"
    assert recipient["eod_enabled"] is True

    duplicate = client.post("/api/notifications/recipients", json={"email": "pm@client.test"}, headers=headers(admin_user))
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Email already exists in the list"

    invalid = client.post("/api/notifications/recipients", json={"email": "nope"}, headers=headers(admin_user))
    assert invalid.json()["detail"] == "Invalid email address"

    updated = client.patch(
        f"/api/notifications/recipients/{recipient['id']}",
        json={"label": "Client PM", "memo_enabled": False},
        headers=headers(admin_user),
    )
    assert updated.json()["label"] == "Client PM"
    assert updated.json()["memo_enabled"] is False

    listing = client.get("/api/notifications/recipients", headers=headers(admin_user)).json()
    assert [r["email"] for r in listing] == ["pm@client.test"]

    deleted = client.delete(f"/api/notifications/recipients/{recipient['id']}", headers=headers(admin_user))
    assert deleted.json() == {"success": True}
    missing = client.delete(f"/api/notifications/recipients/{recipient['id']}", headers=headers(admin_user))
    assert missing.status_code == 404


SUBSCRIPTION = {
    "endpoint": "https://push.example.test/send/" + "a" * 60,
    "keys": {"p256dh": "BNc-key", "auth": "auth-secret"},
}


def test_push_subscription_lifecycle(client, headers, developer, user_factory):
    created = client.post("/api/notifications/subscribe", json={"subscription": SUBSCRIPTION}, headers=headers(developer))
    assert created.status_code == 201
    assert created.json() == {"success": True, "created": True}

    # Same endpoint from another account moves the subscription
    tess = user_factory("tess@example.com", role="tester")
    moved = client.post("/api/notifications/subscribe", json={"subscription": SUBSCRIPTION}, headers=headers(tess))
    assert moved.json()["created"] is False
    assert client.get("/api/notifications/subscription-status", headers=headers(developer)).json()["subscription_count"] == 0

    status = client.get("/api/notifications/subscription-status", headers=headers(tess)).json()
    assert status["user_id"] == str(tess.id)
    assert status["subscription_count"] == 1
    assert status["subscriptions"][0]["endpoint"] == SUBSCRIPTION["endpoint"][:50] + "..."
    assert status["vapid_configured"] is False

    removed = client.request(
        "DELETE", "/api/notifications/subscribe", json={"endpoint": SUBSCRIPTION["endpoint"]}, headers=headers(tess)
    )
    assert removed.json() == {"success": True, "removed": 1}
    assert client.get("/api/notifications/subscription-status", headers=headers(tess)).json()["subscriptions"] == []


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"subscription": {"keys": SUBSCRIPTION["keys"]}},
        {"subscription": {"endpoint": SUBSCRIPTION["endpoint"]}},
        {"subscription": {"endpoint": SUBSCRIPTION["endpoint"], "keys": {"p256dh": "x"}}},
    ],
)
def test_invalid_push_subscription(client, headers, developer, body):
    response = client.post("/api/notifications/subscribe", json=body, headers=headers(developer))
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid subscription object"


def test_unsubscribe_requires_endpoint(client, headers, developer):
    response = client.request("DELETE", "/api/notifications/subscribe", json={}, headers=headers(developer))
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing endpoint"


def test_vapid_configuration_is_reported(client, headers, developer, monkeypatch):
    monkeypatch.setenv("VAPID_PUBLIC_KEY", "public")
    monkeypatch.setenv("VAPID_PRIVATE_KEY", "private")
    status = client.get("/api/notifications/subscription-status", headers=headers(developer)).json()
    assert status["vapid_configured"] is True
