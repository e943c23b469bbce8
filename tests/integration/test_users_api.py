def test_list_requires_authentication(client):
    response = client.get("/api/users")
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication required"


def test_first_request_provisions_user(client, headers):
    response = client.get("/api/users", headers=headers("newbie@example.com", name="Newbie"))
    assert response.status_code == 200
    assert [u["email"] for u in response.json()] == ["newbie@example.com"]
    assert response.json()[0]["role"] == "developer"


def test_admin_creates_user_and_audits(client, headers, admin_user):
    response = client.post(
        "/api/users",
        json={"email": "Tess@Example.com", "name": "Tess", "role": "tester"},
        headers=headers(admin_user),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "tess@example.com"
    assert body["role"] == "tester"

    duplicate = client.post("/api/users", json={"email": "tess@example.com"}, headers=headers(admin_user))
    assert duplicate.status_code == 409

    audits = client.get("/api/audits", params={"target_type": "user"}, headers=headers(admin_user)).json()
    assert audits[0]["action_type"] == "user_create"
    assert audits[0]["metadata"] == {"email": "tess@example.com", "role": "tester"}


def test_create_user_validation(client, headers, admin_user):
    bad_email = client.post("/api/users", json={"email": "nope"}, headers=headers(admin_user))
    assert bad_email.status_code == 422
    bad_role = client.post("/api/users", json={"email": "x@example.com", "role": "owner"}, headers=headers(admin_user))
    assert bad_role.status_code == 422


def test_non_admin_cannot_create_users(client, headers, developer):
    response = client.post("/api/users", json={"email": "x@example.com"}, headers=headers(developer))
    assert response.status_code == 403


def test_filter_by_role(client, headers, admin_user, developer, user_factory):
    user_factory("tess@example.com", role="tester")
    response = client.get("/api/users", params={"role": "tester"}, headers=headers(developer))
    assert [u["email"] for u in response.json()] == ["tess@example.com"]


def test_self_service_profile_update(client, headers, developer):
    response = client.put(f"/api/users/{developer.id}", json={"name": "Dana D."}, headers=headers(developer))
    assert response.status_code == 200
    assert response.json()["name"] == "Dana D."


def test_user_cannot_change_own_role(client, headers, developer):
    response = client.put(f"/api/users/{developer.id}", json={"role": "admin"}, headers=headers(developer))
    assert response.status_code == 403
    assert response.json()["detail"] == "You cannot change your own role"


def test_user_cannot_edit_others(client, headers, developer, admin_user):
    response = client.put(f"/api/users/{admin_user.id}", json={"name": "Hacked"}, headers=headers(developer))
    assert response.status_code == 403


def test_admin_changes_role(client, headers, admin_user, developer):
    response = client.put(f"/api/users/{developer.id}", json={"role": "designer"}, headers=headers(admin_user))
    assert response.status_code == 200
    assert response.json()["role"] == "designer"

    invalid = client.put(f"/api/users/{developer.id}", json={"role": "wizard"}, headers=headers(admin_user))
    assert invalid.status_code == 400

    audits = client.get("/api/audits", params={"target_type": "user"}, headers=headers(admin_user)).json()
    assert audits[0]["action_type"] == "user_role_change"
    assert audits[0]["metadata"]["old_role"] == "developer"
    assert audits[0]["metadata"]["new_role"] == "designer"


def test_update_email_conflict(client, headers, admin_user, developer):
    response = client.put(f"/api/users/{developer.id}", json={"email": "admin@example.com"}, headers=headers(admin_user))
    assert response.status_code == 409


def test_get_unknown_user(client, headers, developer):
    response = client.get("/api/users/00000000-0000-0000-0000-000000000000", headers=headers(developer))
    assert response.status_code == 404


def test_delete_user(client, headers, admin_user, developer):
    self_delete = client.delete(f"/api/users/{admin_user.id}", headers=headers(admin_user))
    assert self_delete.status_code == 400

    response = client.delete(f"/api/users/{developer.id}", headers=headers(admin_user))
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert client.get(f"/api/users/{developer.id}", headers=headers(admin_user)).status_code == 404


def test_roles_catalogue(client, headers, admin_user, developer):
    roles = client.get("/api/roles", headers=headers(developer)).json()
    assert sorted(r["name"] for r in roles) == ["admin", "designer", "developer", "tester"]

    duplicate = client.post("/api/roles", json={"name": "tester"}, headers=headers(admin_user))
    assert duplicate.status_code == 409

    tester = next(r for r in roles if r["name"] == "tester")
    assert client.delete(f"/api/roles/{tester['id']}", headers=headers(developer)).status_code == 403
    assert client.delete(f"/api/roles/{tester['id']}", headers=headers(admin_user)).json() == {"success": True}

    recreated = client.post("/api/roles", json={"name": "tester"}, headers=headers(admin_user))
    assert recreated.status_code == 201

    unknown = client.post("/api/roles", json={"name": "owner"}, headers=headers(admin_user))
    assert unknown.status_code == 422


def test_audits_admin_only(client, headers, developer):
    assert client.get("/api/audits", headers=headers(developer)).status_code == 403
