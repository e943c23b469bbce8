import pytest

from projecthub.services import storage


@pytest.fixture
def project(project_factory, developer):
    return project_factory("Apollo", members=[developer])


# Links

def test_create_and_list_links(client, headers, developer, project):
    response = client.post(
        "/api/links",
        json={"title": " Figma ", "url": "https://figma.com/file/1", "category": "design", "project_id": str(project.id)},
        headers=headers(developer),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Figma"
    assert body["description"] == "design"
    assert body["client_id"] == str(project.client_id)
    assert body["uploader_name"] == "Dana Dev"

    listing = client.get("/api/links", params={"project_id": str(project.id)}, headers=headers(developer)).json()
    assert [link["id"] for link in listing] == [body["id"]]


def test_link_validation_and_access(client, headers, developer, user_factory, project):
    bad_url = client.post(
        "/api/links",
        json={"title": "x", "url": "ftp://files.example.com", "project_id": str(project.id)},
        headers=headers(developer),
    )
    assert bad_url.status_code == 422

    outsider = user_factory("out@example.com")
    forbidden = client.post(
        "/api/links",
        json={"title": "x", "url": "https://example.com", "project_id": str(project.id)},
        headers=headers(outsider),
    )
    assert forbidden.status_code == 403
    assert client.get("/api/links", headers=headers(outsider)).json() == []


def test_update_and_delete_link(client, headers, developer, project):
    link = client.post(
        "/api/links",
        json={"title": "Docs", "url": "https://docs.example.com", "project_id": str(project.id)},
        headers=headers(developer),
    ).json()

    updated = client.patch(
        f"/api/links/{link['id']}",
        json={"title": "Handbook", "category": None},
        headers=headers(developer),
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Handbook"
    assert updated.json()["url"] == "https://docs.example.com"

    assert client.delete(f"/api/links/{link['id']}", headers=headers(developer)).json() == {"success": True}
    assert client.delete(f"/api/links/{link['id']}", headers=headers(developer)).status_code == 404


# Assets

def test_register_asset(client, headers, developer, project):
    response = client.post(
        "/api/assets",
        json={"name": "Logo", "file_url": "https://cdn.example.com/logo.png", "file_type": "image/png",
              "file_size": 1024, "project_id": str(project.id)},
        headers=headers(developer),
    )
    assert response.status_code == 201
    assert response.json()["project_name"] == "Apollo"
    assert response.json()["uploader_name"] == "Dana Dev"


def test_upload_asset_to_local_storage(client, headers, developer, project, tmp_path):
    response = client.post(
        "/api/assets/upload",
        data={"project_id": str(project.id), "folder_type": "client"},
        files={"file": ("brief.pdf", b"%PDF-1.4 brief", "application/pdf")},
        headers=headers(developer),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["folder_type"] == "client"
    assert body["file_size"] == len(b"%PDF-1.4 brief")
    assert body["file_url"].startswith("/uploads/Acme Corp/Apollo/client/")

    stored = list((tmp_path / "uploads").rglob("*brief.pdf"))
    assert len(stored) == 1

    listing = client.get("/api/assets", headers=headers(developer)).json()
    assert [a["id"] for a in listing] == [body["id"]]

    assert client.delete(f"/api/assets/{body['id']}", headers=headers(developer)).json() == {"success": True}
    assert not stored[0].exists()


def test_upload_validation(client, headers, developer, project, monkeypatch):
    no_file = client.post(
        "/api/assets/upload",
        data={"project_id": str(project.id), "folder_type": "client"},
        headers=headers(developer),
    )
    assert no_file.status_code == 400
    assert no_file.json()["detail"] == "No file provided"

    files = {"file": ("a.txt", b"hello", "text/plain")}
    missing = client.post("/api/assets/upload", files=files, headers=headers(developer))
    assert missing.json()["detail"] == "Project ID and folder type are required"

    bad_folder = client.post(
        "/api/assets/upload",
        data={"project_id": str(project.id), "folder_type": "secret"},
        files=files,
        headers=headers(developer),
    )
    assert bad_folder.status_code == 400

    bad_id = client.post(
        "/api/assets/upload",
        data={"project_id": "nope", "folder_type": "client"},
        files=files,
        headers=headers(developer),
    )
    assert bad_id.json()["detail"] == "Invalid project ID"

    monkeypatch.setenv("MAX_FILE_SIZE_MB", "0.000001")
    too_big = client.post(
        "/api/assets/upload",
        data={"project_id": str(project.id), "folder_type": "internal"},
        files=files,
        headers=headers(developer),
    )
    assert too_big.status_code == 413


def test_upload_storage_failure(client, headers, developer, project, monkeypatch):
    class BrokenStorage(storage.LocalStorage):
        def upload(self, key, data, content_type=None):
            raise storage.StorageError("disk full")

    monkeypatch.setattr(storage, "_storage_backend", BrokenStorage())
    response = client.post(
        "/api/assets/upload",
        data={"project_id": str(project.id), "folder_type": "internal"},
        files={"file": ("a.txt", b"hello", "text/plain")},
        headers=headers(developer),
    )
    assert response.status_code == 502


def test_asset_modify_requires_project_access(client, headers, developer, user_factory, project):
    asset = client.post(
        "/api/assets",
        json={"name": "Logo", "file_url": "https://cdn.example.com/logo.png", "project_id": str(project.id)},
        headers=headers(developer),
    ).json()
    outsider = user_factory("out@example.com")

    response = client.patch(f"/api/assets/{asset['id']}", json={"name": "Mine"}, headers=headers(outsider))
    assert response.status_code == 403
    assert response.json()["detail"] == "Forbidden: You don't have permission to modify this asset"

    renamed = client.patch(f"/api/assets/{asset['id']}", json={"name": "Logo v2"}, headers=headers(developer))
    assert renamed.json()["name"] == "Logo v2"
