def test_clients_are_admin_only(client, headers, developer, client_factory):
    client_factory()
    assert client.get("/api/clients", headers=headers(developer)).status_code == 403
    response = client.post("/api/clients", json={"name": "Globex"}, headers=headers(developer))
    assert response.status_code == 403


def test_create_and_list_with_project_counts(client, headers, admin_user, project_factory, client_factory):
    response = client.post(
        "/api/clients",
        json={"name": "  Globex ", "email": "Ops@Globex.com", "description": "Hardware"},
        headers=headers(admin_user),
    )
    assert response.status_code == 201
    assert response.json()["name"] == "Globex"
    assert response.json()["email"] == "ops@globex.com"

    acme = client_factory("Acme Corp")
    project_factory("Apollo", client=acme)
    project_factory("Gemini", client=acme)

    listing = client.get("/api/clients", headers=headers(admin_user)).json()
    assert [(c["name"], c["project_count"]) for c in listing] == [("Acme Corp", 2), ("Globex", 0)]


def test_create_validation(client, headers, admin_user):
    assert client.post("/api/clients", json={"name": "   "}, headers=headers(admin_user)).status_code == 422
    bad_email = client.post("/api/clients", json={"name": "X", "email": "not-an-email"}, headers=headers(admin_user))
    assert bad_email.status_code == 422


def test_update_client(client, headers, admin_user, client_factory):
    acme = client_factory()
    response = client.put(f"/api/clients/{acme.id}", json={"description": "Rockets"}, headers=headers(admin_user))
    assert response.status_code == 200
    assert response.json()["description"] == "Rockets"
    assert response.json()["name"] == "Acme Corp"

    blank = client.put(f"/api/clients/{acme.id}", json={"name": " "}, headers=headers(admin_user))
    assert blank.status_code == 422

    null_name = client.put(f"/api/clients/{acme.id}", json={"name": None}, headers=headers(admin_user))
    assert null_name.status_code == 422

    missing = client.put("/api/clients/00000000-0000-0000-0000-000000000000", json={"name": "X"}, headers=headers(admin_user))
    assert missing.status_code == 404


def test_delete_client_removes_projects(client, headers, admin_user, client_factory, project_factory):
    acme = client_factory()
    project = project_factory(client=acme)

    response = client.delete(f"/api/clients/{acme.id}", headers=headers(admin_user))
    assert response.json() == {"success": True}
    assert client.get(f"/api/clients/{acme.id}", headers=headers(admin_user)).status_code == 404
    assert client.get(f"/api/projects/{project.id}", headers=headers(admin_user)).status_code == 404

    actions = [a["action_type"] for a in client.get("/api/audits", headers=headers(admin_user)).json()]
    assert "client_delete" in actions
