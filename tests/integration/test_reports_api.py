from datetime import timedelta

import pytest

from projecthub.utils.dates import start_of_week_monday, today_utc


@pytest.fixture
def project(project_factory, developer):
    return project_factory("Apollo", members=[developer])


def _memo(client, headers, user, project, **extra):
    payload = {"project_id": str(project.id), "memo_content": "Starting on auth"}
    payload.update(extra)
    return client.post("/api/memos", json=payload, headers=headers(user))


def _eod(client, headers, user, project, **extra):
    payload = {"project_id": str(project.id), "actual_update": "Finished auth", "hours_spent": 6.5}
    payload.update(extra)
    return client.post("/api/eods", json=payload, headers=headers(user))


# Memos

def test_submit_memo_defaults(client, headers, admin_user, developer, project):
    response = _memo(client, headers, developer, project)
    assert response.status_code == 201
    body = response.json()
    assert body["memo_type"] == "short"
    assert body["report_date"] == today_utc().isoformat()
    assert body["project_name"] == "Apollo"
    assert body["user_name"] == "Dana Dev"

    admin_notes = client.get("/api/notifications", headers=headers(admin_user)).json()
    assert admin_notes["notifications"][0]["event_type"] == "memo_submitted"


def test_one_memo_per_type_per_day(client, headers, developer, project):
    assert _memo(client, headers, developer, project).status_code == 201
    duplicate = _memo(client, headers, developer, project)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Memo already exists for this date and type"
    assert _memo(client, headers, developer, project, memo_type="universal").status_code == 201


def test_short_memo_length_limit(client, headers, developer, project):
    assert _memo(client, headers, developer, project, memo_content="x" * 141).status_code == 422
    assert _memo(client, headers, developer, project, memo_content="x" * 140).status_code == 201
    long_universal = _memo(client, headers, developer, project, memo_content="x" * 500, memo_type="universal")
    assert long_universal.status_code == 201


def test_memo_requires_assignment_and_contributor_role(client, headers, admin_user, user_factory, project):
    outsider = user_factory("out@example.com")
    response = _memo(client, headers, outsider, project)
    assert response.status_code == 403
    assert response.json()["detail"] == "You are not assigned to this project"

    assert _memo(client, headers, admin_user, project).status_code == 403


def test_memo_listing_is_scoped(client, headers, admin_user, developer, user_factory, project_factory):
    tess = user_factory("tess@example.com", role="tester")
    shared = project_factory("Apollo", members=[developer, tess])
    _memo(client, headers, developer, shared)
    _memo(client, headers, tess, shared)

    own = client.get("/api/memos", params={"user_id": str(tess.id)}, headers=headers(developer)).json()
    assert [m["user_id"] for m in own] == [str(developer.id)]

    everyone = client.get("/api/memos", headers=headers(admin_user)).json()
    assert len(everyone) == 2
    filtered = client.get("/api/memos", params={"user_id": str(tess.id)}, headers=headers(admin_user)).json()
    assert [m["user_id"] for m in filtered] == [str(tess.id)]


def test_update_memo(client, headers, admin_user, developer, project):
    memo = _memo(client, headers, developer, project).json()

    too_long = client.put(f"/api/memos/{memo['id']}", json={"memo_content": "y" * 141}, headers=headers(developer))
    assert too_long.status_code == 422

    switched = client.put(
        f"/api/memos/{memo['id']}",
        json={"memo_content": "y" * 141, "memo_type": "universal"},
        headers=headers(developer),
    )
    assert switched.status_code == 200
    assert switched.json()["memo_type"] == "universal"

    by_admin = client.put(f"/api/memos/{memo['id']}", json={"memo_content": "z"}, headers=headers(admin_user))
    assert by_admin.status_code == 403


def test_update_memo_conflict(client, headers, developer, project):
    _memo(client, headers, developer, project, memo_type="universal")
    short = _memo(client, headers, developer, project).json()
    response = client.put(f"/api/memos/{short['id']}", json={"memo_type": "universal"}, headers=headers(developer))
    assert response.status_code == 409


def test_delete_memo(client, headers, admin_user, developer, user_factory, project):
    memo = _memo(client, headers, developer, project).json()
    stranger = user_factory("s@example.com")
    assert client.delete(f"/api/memos/{memo['id']}", headers=headers(stranger)).status_code == 403
    assert client.delete(f"/api/memos/{memo['id']}", headers=headers(admin_user)).json() == {"success": True}
    assert client.get(f"/api/memos/{memo['id']}", headers=headers(developer)).status_code == 404


# EOD reports

def test_submit_eod_notifies_admins(client, headers, admin_user, developer, project):
    response = _eod(client, headers, developer, project, client_update="Login is live")
    assert response.status_code == 201
    body = response.json()
    assert body["hours_spent"] == 6.5
    assert body["client_update"] == "Login is live"

    notes = client.get("/api/notifications", headers=headers(admin_user)).json()
    assert notes["unread_count"] == 1
    assert notes["notifications"][0]["title"] == "📋 EOD Report Submitted"
    assert notes["notifications"][0]["metadata"]["eod_id"] == body["id"]


def test_eod_validation(client, headers, developer, project):
    assert _eod(client, headers, developer, project, actual_update="   ").status_code == 422
    assert _eod(client, headers, developer, project, hours_spent=0.1).status_code == 422
    assert _eod(client, headers, developer, project, hours_spent=25).status_code == 422


def test_one_eod_per_day(client, headers, developer, project):
    assert _eod(client, headers, developer, project).status_code == 201
    duplicate = _eod(client, headers, developer, project)
    assert duplicate.status_code == 409
    yesterday = (today_utc() - timedelta(days=1)).isoformat()
    assert _eod(client, headers, developer, project, report_date=yesterday).status_code == 201


def test_eod_ownership(client, headers, admin_user, developer, user_factory, project):
    eod = _eod(client, headers, developer, project).json()
    stranger = user_factory("s@example.com")

    assert client.get(f"/api/eods/{eod['id']}", headers=headers(stranger)).status_code == 403
    assert client.get(f"/api/eods/{eod['id']}", headers=headers(admin_user)).status_code == 200
    assert client.put(f"/api/eods/{eod['id']}", json={"actual_update": "x"}, headers=headers(admin_user)).status_code == 403

    updated = client.put(f"/api/eods/{eod['id']}", json={"hours_spent": 8}, headers=headers(developer))
    assert updated.json()["hours_spent"] == 8.0
    assert updated.json()["actual_update"] == "Finished auth"

    assert client.delete(f"/api/eods/{eod['id']}", headers=headers(developer)).json() == {"success": True}


def test_update_eod_date_conflict(client, headers, developer, project):
    yesterday = (today_utc() - timedelta(days=1)).isoformat()
    _eod(client, headers, developer, project, report_date=yesterday)
    today = _eod(client, headers, developer, project).json()
    response = client.put(f"/api/eods/{today['id']}", json={"report_date": yesterday}, headers=headers(developer))
    assert response.status_code == 409


def test_weekly_eods(client, headers, developer, user_factory, project):
    _eod(client, headers, developer, project)
    week_start = start_of_week_monday(today_utc())
    if week_start > today_utc() - timedelta(days=1):
        expected = 1
    else:
        _eod(client, headers, developer, project, report_date=(today_utc() - timedelta(days=1)).isoformat())
        expected = 2
    _eod(client, headers, developer, project, report_date=(week_start - timedelta(days=1)).isoformat())

    params = {"project_id": str(project.id), "user_id": str(developer.id)}
    body = client.get("/api/eods/weekly", params=params, headers=headers(developer)).json()
    assert body["meta"]["total"] == expected
    assert body["meta"]["week_start"] == week_start.isoformat()

    assert client.get("/api/eods/weekly", headers=headers(developer)).status_code == 400
    stranger = user_factory("s@example.com")
    assert client.get("/api/eods/weekly", params=params, headers=headers(stranger)).status_code == 403


def test_eod_listing_by_date(client, headers, developer, project):
    yesterday = (today_utc() - timedelta(days=1)).isoformat()
    _eod(client, headers, developer, project)
    _eod(client, headers, developer, project, report_date=yesterday)

    listing = client.get("/api/eods", headers=headers(developer)).json()
    assert [e["report_date"] for e in listing] == [today_utc().isoformat(), yesterday]
    one_day = client.get("/api/eods", params={"date": yesterday}, headers=headers(developer)).json()
    assert len(one_day) == 1
