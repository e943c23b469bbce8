import pytest

from projecthub.db import models
from projecthub.db.repositories import tasks as task_repo


@pytest.fixture
def board(db):
    return {c.title: c for c in task_repo.ensure_default_columns(db)}


@pytest.fixture
def project(project_factory, developer):
    return project_factory("Apollo", members=[developer])


def _task(client, headers, user, project, name, column):
    response = client.post(
        "/api/tasks",
        json={"name": name, "project_id": str(project.id), "column_id": str(column.id)},
        headers=headers(user),
    )
    assert response.status_code == 201
    return response.json()


def _lanes(client, headers, user, project):
    tasks = client.get("/api/tasks", params={"project_id": str(project.id)}, headers=headers(user)).json()
    lanes = {}
    for task in sorted(tasks, key=lambda t: t["position"]):
        lanes.setdefault(task["column_id"], []).append((task["name"], task["position"]))
    return lanes


def test_default_columns_are_listed_and_protected(client, headers, developer, board):
    listing = client.get("/api/columns", headers=headers(developer)).json()
    assert [(c["title"], c["color"], c["position"]) for c in listing] == [
        ("To Do", "#3B82F6", 0),
        ("In Progress", "#F59E0B", 1),
        ("Complete", "#10B981", 2),
    ]

    todo = board["To Do"]
    patched = client.patch(f"/api/columns/{todo.id}", json={"title": "Later"}, headers=headers(developer))
    assert patched.status_code == 403
    assert patched.json()["detail"] == "Cannot modify default columns"
    deleted = client.delete(f"/api/columns/{todo.id}", headers=headers(developer))
    assert deleted.status_code == 403
    assert deleted.json()["detail"] == "Cannot delete default columns"


def test_personal_and_project_columns(client, headers, developer, user_factory, project, board):
    personal = client.post("/api/columns", json={"title": " Blocked "}, headers=headers(developer))
    assert personal.status_code == 201
    assert personal.json()["title"] == "Blocked"
    assert personal.json()["user_id"] == str(developer.id)
    assert personal.json()["color"] == "#6B7280"
    assert personal.json()["position"] == 3

    shared = client.post(
        "/api/columns",
        json={"title": "QA", "color": "#EF4444", "project_id": str(project.id)},
        headers=headers(developer),
    ).json()
    assert shared["project_id"] == str(project.id)
    assert shared["position"] == 4

    everywhere = client.get("/api/columns", headers=headers(developer)).json()
    assert [c["title"] for c in everywhere] == ["To Do", "In Progress", "Complete", "Blocked"]
    on_board = client.get("/api/columns", params={"project_id": str(project.id)}, headers=headers(developer)).json()
    assert [c["title"] for c in on_board] == ["To Do", "In Progress", "Complete", "Blocked", "QA"]

    tess = user_factory("tess@example.com", role="tester")
    assert client.get("/api/columns", headers=headers(tess)).json()[-1]["title"] == "Complete"
    assert client.get("/api/columns", params={"project_id": str(project.id)}, headers=headers(tess)).status_code == 403
    assert client.patch(f"/api/columns/{personal.json()['id']}", json={"title": "x"}, headers=headers(tess)).status_code == 403


def test_create_column_errors(client, headers, developer, user_factory, project_factory, board):
    assert client.post("/api/columns", json={"title": "  "}, headers=headers(developer)).status_code == 422
    assert client.post("/api/columns", json={}, headers=headers(developer)).status_code == 422

    missing = client.post(
        "/api/columns",
        json={"title": "QA", "project_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers(developer),
    )
    assert missing.status_code == 404

    foreign = project_factory("Gemini")
    assert client.post(
        "/api/columns", json={"title": "QA", "project_id": str(foreign.id)}, headers=headers(developer)
    ).status_code == 403

    someone = user_factory("someone@example.com")
    assert client.post(
        "/api/columns", json={"title": "Theirs", "user_id": str(someone.id)}, headers=headers(developer)
    ).status_code == 403


def test_update_and_delete_column(client, headers, db, developer, project, board):
    column = client.post(
        "/api/columns", json={"title": "QA", "project_id": str(project.id)}, headers=headers(developer)
    ).json()

    updated = client.patch(
        f"/api/columns/{column['id']}",
        json={"title": "Review", "color": "#000000", "position": 0},
        headers=headers(developer),
    )
    assert updated.status_code == 200
    assert (updated.json()["title"], updated.json()["color"], updated.json()["position"]) == ("Review", "#000000", 0)
    assert client.patch(f"/api/columns/{column['id']}", json={"title": None}, headers=headers(developer)).status_code == 422
    assert client.patch(
        "/api/columns/00000000-0000-0000-0000-000000000000", json={"title": "x"}, headers=headers(developer)
    ).status_code == 404

    task = client.post(
        "/api/tasks",
        json={"name": "Check build", "project_id": str(project.id), "column_id": column["id"]},
        headers=headers(developer),
    ).json()
    assert task["column_id"] == column["id"]

    response = client.delete(f"/api/columns/{column['id']}", headers=headers(developer))
    assert response.json() == {"success": True, "message": "Column deleted successfully"}
    db.expire_all()
    assert db.query(models.Task).filter_by(name="Check build").one().column_id is None


def test_task_column_must_belong_to_board(client, headers, developer, user_factory, project, board):
    tess = user_factory("tess@example.com", role="tester")
    theirs = client.post("/api/columns", json={"title": "Mine"}, headers=headers(tess)).json()

    response = client.post(
        "/api/tasks",
        json={"name": "Build login", "project_id": str(project.id), "column_id": theirs["id"]},
        headers=headers(developer),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Column is not available for this task"

    unknown = client.post(
        "/api/tasks",
        json={"name": "Build login", "project_id": str(project.id), "column_id": "00000000-0000-0000-0000-000000000000"},
        headers=headers(developer),
    )
    assert unknown.status_code == 404


def test_reorder_within_and_across_columns(client, headers, developer, project, board):
    todo, doing = board["To Do"], board["In Progress"]
    a = _task(client, headers, developer, project, "A", todo)
    b = _task(client, headers, developer, project, "B", todo)
    c = _task(client, headers, developer, project, "C", todo)
    assert [a["position"], b["position"], c["position"]] == [0, 1, 2]

    def reorder(task, column, position):
        response = client.post(
            "/api/tasks/reorder",
            json={"task_id": task["id"], "destination_column_id": str(column.id), "position": position},
            headers=headers(developer),
        )
        assert response.status_code == 200
        return response.json()["message"]

    # Down the same column
    assert reorder(a, todo, 2) == "Task reordered successfully"
    assert _lanes(client, headers, developer, project) == {str(todo.id): [("B", 0), ("C", 1), ("A", 2)]}

    # Up the same column
    reorder(c, todo, 0)
    assert _lanes(client, headers, developer, project) == {str(todo.id): [("C", 0), ("B", 1), ("A", 2)]}

    # Across columns
    reorder(b, doing, 0)
    assert _lanes(client, headers, developer, project) == {
        str(todo.id): [("C", 0), ("A", 1)],
        str(doing.id): [("B", 0)],
    }
    reorder(c, doing, 0)
    assert _lanes(client, headers, developer, project) == {
        str(todo.id): [("A", 0)],
        str(doing.id): [("C", 0), ("B", 1)],
    }

    assert reorder(c, doing, 0) == "No change needed"


def test_reorder_errors(client, headers, developer, user_factory, project, board):
    task = _task(client, headers, developer, project, "A", board["To Do"])
    outsider = user_factory("out@example.com")

    forbidden = client.post(
        "/api/tasks/reorder",
        json={"task_id": task["id"], "destination_column_id": str(board["Complete"].id), "position": 0},
        headers=headers(outsider),
    )
    assert forbidden.status_code == 403

    negative = client.post(
        "/api/tasks/reorder",
        json={"task_id": task["id"], "destination_column_id": str(board["Complete"].id), "position": -1},
        headers=headers(developer),
    )
    assert negative.status_code == 422

    missing = client.post(
        "/api/tasks/reorder",
        json={
            "task_id": "00000000-0000-0000-0000-000000000000",
            "destination_column_id": str(board["Complete"].id),
            "position": 0,
        },
        headers=headers(developer),
    )
    assert missing.status_code == 404
