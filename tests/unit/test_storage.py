from unittest.mock import MagicMock

import pytest

from projecthub.services import storage
from projecthub.services.storage import (
    GoogleDriveStorage,
    LocalStorage,
    StorageError,
    build_asset_key,
    max_upload_bytes,
    safe_segment,
)


def test_safe_segment_replaces_path_characters():
    assert safe_segment("Acme/Corp") == "Acme_Corp"
    assert safe_segment("../etc") == "_etc"
    assert safe_segment("   ") == "untitled"


def test_build_asset_key_layout():
    key = build_asset_key("Acme Corp", "Apollo", "client", "logo final.png")
    client, project, folder, name = key.split("/")
    assert (client, project, folder) == ("Acme Corp", "Apollo", "client")
    assert name.endswith("-logo final.png")
    assert len(name.split("-", 1)[0]) == 8


def test_local_upload_list_delete(tmp_path):
    backend = LocalStorage(root=str(tmp_path), url_prefix="/files/")
    stored = backend.upload("acme/apollo/client/a.txt", b"hello", "text/plain")
    assert stored.url == "/files/acme/apollo/client/a.txt"
    assert stored.size == 5
    assert (tmp_path / "acme/apollo/client/a.txt").read_bytes() == b"hello"

    listed = backend.list("acme/apollo")
    assert [obj.key for obj in listed] == ["acme/apollo/client/a.txt"]
    assert backend.list("missing") == []

    assert backend.delete("acme/apollo/client/a.txt") is True
    assert backend.delete("acme/apollo/client/a.txt") is False


def test_local_rejects_keys_outside_root(tmp_path):
    backend = LocalStorage(root=str(tmp_path / "root"))
    with pytest.raises(StorageError):
        backend.upload("../outside.txt", b"x")


def test_max_upload_bytes(monkeypatch):
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "2")
    assert max_upload_bytes() == 2 * 1024 * 1024
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "lots")
    assert max_upload_bytes() == 50 * 1024 * 1024


def test_unknown_backend_is_an_error(monkeypatch):
    monkeypatch.setattr(storage, "_storage_backend", None)
    monkeypatch.setenv("STORAGE_BACKEND", "ftp")
    with pytest.raises(StorageError):
        storage.get_storage_backend()


def test_gdrive_requires_root_folder(monkeypatch):
    monkeypatch.delenv("GOOGLE_DRIVE_ROOT_FOLDER_ID", raising=False)
    with pytest.raises(StorageError):
        GoogleDriveStorage(service=MagicMock())


def test_gdrive_upload_creates_missing_folders():
    service = MagicMock()
    files = service.files.return_value
    files.list.return_value.execute.return_value = {"files": []}
    files.create.return_value.execute.side_effect = [
        {"id": "folder-client"},
        {"id": "folder-project"},
        {"id": "file-1", "name": "a.png", "webViewLink": "https://drive.test/file-1", "size": "3"},
    ]
    backend = GoogleDriveStorage(service=service, root_folder_id="root")

    stored = backend.upload("Acme/Apollo/a.png", b"abc", "image/png")

    assert stored.key == "file-1"
    assert stored.url == "https://drive.test/file-1"
    assert stored.size == 3
    assert files.create.call_count == 3
    last_body = files.create.call_args_list[-1].kwargs["body"]
    assert last_body == {"name": "a.png", "parents": ["folder-project"]}
