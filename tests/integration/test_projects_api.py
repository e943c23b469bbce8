from datetime import datetime, UTC

import pytest

from projecthub.db import models


def test_create_project_assigns_and_notifies(client, headers, db, admin_user, developer, client_factory):
    acme = client_factory()
    response = client.post(
        "/api/projects",
        json={
            "name": "Apollo",
            "client_id": str(acme.id),
            "description": "Moonshot",
            "is_memo_required": True,
            "assigned_user_ids": [str(developer.id)],
        },
        headers=headers(admin_user),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["client_name"] == "Acme Corp"
    assert body["status"] == "active"
    assert [m["email"] for m in body["members"]] == ["dev@example.com"]

    group = db.query(models.ChatGroup).filter_by(project_id=body["id"]).one_or_none()
    assert group is not None and group.name == "Apollo"

    notes = client.get("/api/notifications", headers=headers(developer)).json()
    assert notes["notifications"][0]["event_type"] == "project_assigned"
    assert notes["notifications"][0]["action_url"] == f"/projects/{body['id']}"


def test_create_project_errors(client, headers, admin_user, developer, client_factory):
    missing_client = client.post(
        "/api/projects",
        json={"name": "X", "client_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers(admin_user),
    )
    assert missing_client.status_code == 404
    assert missing_client.json()["detail"] == "Client not found"

    acme = client_factory()
    unknown_user = client.post(
        "/api/projects",
        json={"name": "X", "client_id": str(acme.id), "assigned_user_ids": ["00000000-0000-0000-0000-000000000000"]},
        headers=headers(admin_user),
    )
    assert unknown_user.status_code == 404

    bad_status = client.post(
        "/api/projects",
        json={"name": "X", "client_id": str(acme.id), "status": "paused"},
        headers=headers(admin_user),
    )
    assert bad_status.status_code == 422

    forbidden = client.post("/api/projects", json={"name": "X", "client_id": str(acme.id)}, headers=headers(developer))
    assert forbidden.status_code == 403


def test_listing_is_scoped_to_assignments(client, headers, admin_user, developer, project_factory):
    project_factory("Apollo", members=[developer])
    project_factory("Gemini")

    mine = client.get("/api/projects", headers=headers(developer)).json()
    assert [p["name"] for p in mine] == ["Apollo"]

    everything = client.get("/api/projects", headers=headers(admin_user)).json()
    assert sorted(p["name"] for p in everything) == ["Apollo", "Gemini"]


def test_status_filter(client, headers, admin_user, project_factory):
    project_factory("Apollo")
    project_factory("Gemini", status="completed")
    done = client.get("/api/projects", params={"status": "completed"}, headers=headers(admin_user)).json()
    assert [p["name"] for p in done] == ["Gemini"]


def test_project_detail_access(client, headers, developer, user_factory, project_factory):
    project = project_factory(members=[developer])
    outsider = user_factory("out@example.com")

    assert client.get(f"/api/projects/{project.id}", headers=headers(developer)).status_code == 200
    assert client.get(f"/api/projects/{project.id}", headers=headers(outsider)).status_code == 403


def test_update_project_renames_chat_group(client, headers, db, admin_user, project_factory):
    project = project_factory()
    response = client.patch(
        f"/api/projects/{project.id}",
        json={"name": "Apollo II", "status": "on-hold"},
        headers=headers(admin_user),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "on-hold"
    db.expire_all()
    assert db.query(models.ChatGroup).filter_by(project_id=project.id).one().name == "Apollo II"


@pytest.mark.parametrize("field", ["name", "status", "is_memo_required", "client_id"])
def test_update_project_rejects_explicit_null(client, headers, admin_user, project_factory, field):
    project = project_factory()
    response = client.patch(f"/api/projects/{project.id}", json={field: None}, headers=headers(admin_user))
    assert response.status_code == 422
    assert client.get(f"/api/projects/{project.id}", headers=headers(admin_user)).json()["name"] == "Apollo"


def test_delete_project(client, headers, admin_user, developer, project_factory):
    project = project_factory(members=[developer])
    assert client.delete(f"/api/projects/{project.id}", headers=headers(developer)).status_code == 403
    assert client.delete(f"/api/projects/{project.id}", headers=headers(admin_user)).json() == {"success": True}
    assert client.delete(f"/api/projects/{project.id}", headers=headers(admin_user)).status_code == 404


def test_membership_lifecycle(client, headers, admin_user, developer, project_factory):
    project = project_factory()

    added = client.post(f"/api/projects/{project.id}/members", json={"user_id": str(developer.id)}, headers=headers(admin_user))
    assert added.status_code == 201
    assert added.json()["is_active"] is True

    again = client.post(f"/api/projects/{project.id}/members", json={"user_id": str(developer.id)}, headers=headers(admin_user))
    assert again.status_code == 201
    notes = client.get("/api/notifications", headers=headers(developer)).json()
    assert notes["total_count"] == 1

    members = client.get(f"/api/projects/{project.id}/members", headers=headers(developer)).json()
    assert [m["user_id"] for m in members] == [str(developer.id)]

    status = client.get(f"/api/projects/{project.id}/assignment", params={"user_id": str(developer.id)}, headers=headers(developer))
    assert status.json()["is_active"] is True
    missing_param = client.get(f"/api/projects/{project.id}/assignment", headers=headers(developer))
    assert missing_param.status_code == 400

    removed = client.delete(f"/api/projects/{project.id}/members/{developer.id}", headers=headers(admin_user))
    assert removed.json() == {"success": True}
    gone = client.delete(f"/api/projects/{project.id}/members/{developer.id}", headers=headers(admin_user))
    assert gone.status_code == 404


def test_toggle_active(client, headers, db, admin_user, developer, user_factory, project_factory):
    project = project_factory(members=[developer])
    other = user_factory("other@example.com")

    off = client.post(f"/api/projects/{project.id}/toggle-active", json={"is_active": False}, headers=headers(developer))
    assert off.json() == {"success": True, "is_active": False}

    on = client.post(f"/api/projects/{project.id}/toggle-active", json={"is_active": True}, headers=headers(developer))
    assert on.json()["is_active"] is True
    assignment = db.query(models.UserProjectAssignment).filter_by(user_id=developer.id).one()
    db.refresh(assignment)
    assert assignment.last_activated_at is not None

    not_mine = client.post(
        f"/api/projects/{project.id}/toggle-active",
        json={"is_active": False, "user_id": str(developer.id)},
        headers=headers(other),
    )
    assert not_mine.status_code == 403

    by_admin = client.post(
        f"/api/projects/{project.id}/toggle-active",
        json={"is_active": False, "user_id": str(developer.id)},
        headers=headers(admin_user),
    )
    assert by_admin.json()["is_active"] is False


def test_cannot_activate_inactive_project(client, headers, developer, project_factory):
    project = project_factory(members=[developer], status="completed")
    response = client.post(f"/api/projects/{project.id}/toggle-active", json={"is_active": True}, headers=headers(developer))
    assert response.status_code == 403
    assert response.json()["detail"] == "Cannot activate project because it is completed"


def test_updates_history_endpoint(client, headers, admin_user, developer, user_factory, project_factory):
    start = datetime(2024, 4, 1, tzinfo=UTC)
    project = project_factory(members=[developer], created_at=start, assigned_at=start)
    other = user_factory("other@example.com")

    own = client.get(f"/api/projects/{project.id}/updates-history", params={"month": "2024-05"}, headers=headers(developer))
    assert own.status_code == 200
    assert own.json()["month"] == "2024-05"
    assert len(own.json()["days"]) == 35

    forbidden = client.get(
        f"/api/projects/{project.id}/updates-history",
        params={"user_id": str(developer.id)},
        headers=headers(other),
    )
    assert forbidden.status_code == 403

    by_admin = client.get(
        f"/api/projects/{project.id}/updates-history",
        params={"user_id": str(developer.id), "month": "2024-13"},
        headers=headers(admin_user),
    )
    assert by_admin.status_code == 400
