import re

import pytest

SHORT_ID = re.compile(r"^PH-[23456789ABCDEFGHJKLMNPQRSTUVWXYZ]{6}$")


@pytest.fixture
def project(project_factory, developer):
    return project_factory("Apollo", members=[developer])


def _create(client, headers, user, project, **extra):
    payload = {"name": "Build login", "project_id": str(project.id)}
    payload.update(extra)
    return client.post("/api/tasks", json=payload, headers=headers(user))


def test_create_task_allocates_short_id(client, headers, developer, project):
    response = _create(client, headers, developer, project, assigned_user_ids=[str(developer.id)], priority="high")
    assert response.status_code == 201
    body = response.json()
    assert SHORT_ID.match(body["short_id"])
    assert body["status"] == "todo"
    assert body["priority"] == "high"
    assert body["position"] == 0
    assert [a["email"] for a in body["assignees"]] == ["dev@example.com"]
    assert body["created_by"] == str(developer.id)

    second = _create(client, headers, developer, project, name="Build logout").json()
    assert second["position"] == 1
    assert second["short_id"] != body["short_id"]


def test_task_permissions(client, headers, user_factory, developer, project):
    tester = user_factory("tess@example.com", role="tester")
    assert _create(client, headers, tester, project).status_code == 403

    outsider = user_factory("out@example.com")
    assert _create(client, headers, outsider, project).status_code == 403


def test_create_task_validation(client, headers, developer, project, project_factory):
    assert _create(client, headers, developer, project, name="").status_code == 422
    assert _create(client, headers, developer, project, status="blocked").status_code == 422

    missing = client.post(
        "/api/tasks",
        json={"name": "x", "project_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers(developer),
    )
    assert missing.status_code == 404

    unknown_assignee = _create(client, headers, developer, project, assigned_user_ids=["00000000-0000-0000-0000-000000000000"])
    assert unknown_assignee.status_code == 404


def test_subtasks_must_share_project(client, headers, admin_user, developer, project, project_factory):
    parent = _create(client, headers, developer, project).json()
    child = _create(client, headers, developer, project, name="Form", parent_task_id=parent["id"])
    assert child.status_code == 201

    other = project_factory("Gemini")
    foreign = _create(client, headers, admin_user, other, name="Stray", parent_task_id=parent["id"])
    assert foreign.status_code == 400

    subtasks = client.get(f"/api/tasks/{parent['id']}/subtasks", headers=headers(developer)).json()
    assert [t["name"] for t in subtasks] == ["Form"]

    detail = client.get(f"/api/tasks/{parent['id']}", headers=headers(developer)).json()
    assert detail["project_name"] == "Apollo"
    assert [t["id"] for t in detail["subtasks"]] == [child.json()["id"]]


def test_lookup_by_short_id_is_case_insensitive(client, headers, developer, project):
    task = _create(client, headers, developer, project).json()

    found = client.get(f"/api/tasks/lookup/{task['short_id'].lower()}", headers=headers(developer))
    assert found.status_code == 200
    assert found.json()["id"] == task["id"]

    assert client.get("/api/tasks/lookup/nope", headers=headers(developer)).status_code == 400
    assert client.get("/api/tasks/lookup/PH-ZZZZZZ", headers=headers(developer)).status_code == 404


def test_list_tasks_scoped(client, headers, admin_user, developer, project, project_factory):
    _create(client, headers, developer, project)
    other = project_factory("Gemini")
    _create(client, headers, admin_user, other, name="Secret")

    mine = client.get("/api/tasks", headers=headers(developer)).json()
    assert [t["name"] for t in mine] == ["Build login"]

    assert client.get("/api/tasks", params={"project_id": str(other.id)}, headers=headers(developer)).status_code == 403
    everything = client.get("/api/tasks", headers=headers(admin_user)).json()
    assert len(everything) == 2


def test_update_and_replace_assignees(client, headers, developer, user_factory, project):
    helper = user_factory("helper@example.com")
    task = _create(client, headers, developer, project, assigned_user_ids=[str(developer.id)]).json()

    response = client.patch(
        f"/api/tasks/{task['id']}",
        json={"status": "in_progress", "assigned_user_ids": [str(helper.id)]},
        headers=headers(developer),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert [a["email"] for a in response.json()["assignees"]] == ["helper@example.com"]

    filtered = client.get("/api/tasks", params={"status": "in_progress"}, headers=headers(developer)).json()
    assert [t["id"] for t in filtered] == [task["id"]]


@pytest.mark.parametrize("field", ["name", "status", "priority", "position"])
def test_update_task_rejects_explicit_null(client, headers, developer, project, field):
    task = _create(client, headers, developer, project).json()
    response = client.patch(f"/api/tasks/{task['id']}", json={field: None}, headers=headers(developer))
    assert response.status_code == 422
    assert client.get(f"/api/tasks/{task['id']}", headers=headers(developer)).json()["status"] == "todo"


def test_delete_task_removes_subtasks(client, headers, developer, project):
    parent = _create(client, headers, developer, project).json()
    child = _create(client, headers, developer, project, name="Form", parent_task_id=parent["id"]).json()

    response = client.delete(f"/api/tasks/{parent['id']}", headers=headers(developer))
    assert response.json() == {"success": True, "message": "Task deleted successfully"}
    assert client.get(f"/api/tasks/{child['id']}", headers=headers(developer)).status_code == 404


def test_comments(client, headers, developer, user_factory, project):
    task = _create(client, headers, developer, project).json()

    created = client.post(f"/api/tasks/{task['id']}/comments", json={"content": "On it"}, headers=headers(developer))
    assert created.status_code == 201
    assert created.json()["user_name"] == "Dana Dev"

    comments = client.get(f"/api/tasks/{task['id']}/comments", headers=headers(developer)).json()
    assert [c["content"] for c in comments] == ["On it"]

    outsider = user_factory("out@example.com")
    blocked = client.post(f"/api/tasks/{task['id']}/comments", json={"content": "hi"}, headers=headers(outsider))
    assert blocked.status_code == 403
    empty = client.post(f"/api/tasks/{task['id']}/comments", json={"content": ""}, headers=headers(developer))
    assert empty.status_code == 422
