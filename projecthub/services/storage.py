"""
Asset storage backends.

Objects are addressed by a slash separated key,
``{client}/{project}/{folder_type}/{file name}``. ``LocalStorage`` writes under
``LOCAL_STORAGE_DIR``; ``GoogleDriveStorage`` mirrors the key as a folder
chain under ``GOOGLE_DRIVE_ROOT_FOLDER_ID`` using a service account.
"""
import io
import os
import re
import json
import uuid
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

FOLDER_TYPES = ("client", "internal")
DRIVE_FOLDER_MIME = "application/vnd.google-apps.folder"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

_UNSAFE_SEGMENT = re.compile(r"[^A-Za-z0-9._ -]+")


class StorageError(Exception):
    """Raised when a backend cannot store, list or remove an object."""


@dataclass
class StoredObject:
    key: str
    name: str
    url: str
    size: int
    content_type: Optional[str] = None


def safe_segment(value: str) -> str:
    cleaned = _UNSAFE_SEGMENT.sub("_", (value or "").strip()).strip(". ")
    return cleaned or "untitled"


def build_asset_key(client_name: str, project_name: str, folder_type: str, filename: str) -> str:
    """Key for an upload; a short random prefix keeps same-named files apart."""
    unique_name = f"{uuid.uuid4().hex[:8]}-{safe_segment(filename)}"
    return "/".join([safe_segment(client_name), safe_segment(project_name), safe_segment(folder_type), unique_name])


class StorageBackend(ABC):
    name = "abstract"

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def list(self, prefix: str = "") -> List[StoredObject]:
        ...


class LocalStorage(StorageBackend):
    name = "local"

    def __init__(self, root: Optional[str] = None, url_prefix: Optional[str] = None):
        self.root = Path(root or os.getenv("LOCAL_STORAGE_DIR", "./uploads")).resolve()
        self.url_prefix = (url_prefix or os.getenv("LOCAL_STORAGE_URL_PREFIX", "/uploads")).rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc
        logger.info("storage_upload: backend=local key=%s size=%d", key, len(data))
        return StoredObject(key=key, name=path.name, url=f"{self.url_prefix}/{key}", size=len(data), content_type=content_type)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
        return True

    def list(self, prefix: str = "") -> List[StoredObject]:
        base = self._path(prefix) if prefix else self.root
        if not base.exists():
            return []
        objects = []
        for path in sorted(p for p in base.rglob("*") if p.is_file()):
            key = path.relative_to(self.root).as_posix()
            objects.append(StoredObject(key=key, name=path.name, url=f"{self.url_prefix}/{key}", size=path.stat().st_size))
        return objects


class GoogleDriveStorage(StorageBackend):
    """Drive v3 storage; the stored key for an upload is the Drive file id."""

    name = "gdrive"

    def __init__(self, service=None, root_folder_id: Optional[str] = None):
        self.root_folder_id = root_folder_id or os.getenv("GOOGLE_DRIVE_ROOT_FOLDER_ID", "")
        if not self.root_folder_id:
            raise StorageError("GOOGLE_DRIVE_ROOT_FOLDER_ID is required for the gdrive backend")
        self.service = service or self._build_service()

    @staticmethod
    def _build_service():
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        raw = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
        key_file = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE")
        if raw:
            try:
                info = json.loads(raw)
            except ValueError as exc:
                raise StorageError("Invalid service account key format") from exc
            creds = service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)
        elif key_file:
            creds = service_account.Credentials.from_service_account_file(key_file, scopes=DRIVE_SCOPES)
        else:
            raise StorageError("Google service account credentials are not configured")
        return build("drive", "v3", credentials=creds, cache_discovery=False)

    @staticmethod
    def _escape(value: str) -> str:
        return value.replace("\\", "\\\\").replace("'", "\\'")

    def find_folder(self, name: str, parent_id: str) -> Optional[str]:
        query = (
            f"name='{self._escape(name)}' and '{parent_id}' in parents "
            f"and mimeType='{DRIVE_FOLDER_MIME}' and trashed=false"
        )
        results = self.service.files().list(
            q=query, fields="files(id, name)", spaces="drive",
            supportsAllDrives=True, includeItemsFromAllDrives=True,
        ).execute()
        files = results.get("files", [])
        return files[0]["id"] if files else None

    def find_or_create_folder(self, name: str, parent_id: str) -> str:
        folder_id = self.find_folder(name, parent_id)
        if folder_id:
            return folder_id
        metadata = {"name": name, "mimeType": DRIVE_FOLDER_MIME, "parents": [parent_id]}
        folder = self.service.files().create(body=metadata, fields="id", supportsAllDrives=True).execute()
        logger.info("gdrive_folder_created: name=%s parent=%s", name, parent_id)
        return folder["id"]

    def _folder_for(self, parts: List[str]) -> str:
        parent = self.root_folder_id
        for part in parts:
            parent = self.find_or_create_folder(part, parent)
        return parent

    def upload(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        from googleapiclient.errors import HttpError
        from googleapiclient.http import MediaIoBaseUpload

        *folders, filename = key.split("/")
        try:
            folder_id = self._folder_for(folders)
            media = MediaIoBaseUpload(io.BytesIO(data), mimetype=content_type or "application/octet-stream", resumable=False)
            created = self.service.files().create(
                body={"name": filename, "parents": [folder_id]},
                media_body=media,
                fields="id, name, webViewLink, size",
                supportsAllDrives=True,
            ).execute()
        except HttpError as exc:
            raise StorageError(f"Drive upload failed for {key}: {exc}") from exc
        logger.info("storage_upload: backend=gdrive key=%s file_id=%s", key, created["id"])
        return StoredObject(
            key=created["id"],
            name=created.get("name", filename),
            url=created.get("webViewLink", ""),
            size=int(created.get("size") or len(data)),
            content_type=content_type,
        )

    def delete(self, key: str) -> bool:
        from googleapiclient.errors import HttpError

        try:
            self.service.files().delete(fileId=key, supportsAllDrives=True).execute()
        except HttpError as exc:
            if getattr(exc, "resp", None) is not None and exc.resp.status == 404:
                return False
            raise StorageError(f"Drive delete failed for {key}: {exc}") from exc
        return True

    def list(self, prefix: str = "") -> List[StoredObject]:
        parts = [p for p in prefix.split("/") if p]
        parent = self.root_folder_id
        for part in parts:
            parent = self.find_folder(part, parent)
            if parent is None:
                return []
        results = self.service.files().list(
            q=f"'{parent}' in parents and trashed=false",
            fields="files(id, name, mimeType, webViewLink, size)",
            supportsAllDrives=True, includeItemsFromAllDrives=True,
        ).execute()
        return [
            StoredObject(
                key=f["id"],
                name=f["name"],
                url=f.get("webViewLink", ""),
                size=int(f.get("size") or 0),
                content_type=f.get("mimeType"),
            )
            for f in results.get("files", [])
        ]


_storage_backend: Optional[StorageBackend] = None


def storage_backend_name() -> str:
    return os.getenv("STORAGE_BACKEND", "local").strip().lower()


def get_storage_backend() -> StorageBackend:
    """Singleton backend chosen by ``STORAGE_BACKEND``."""
    global _storage_backend
    if _storage_backend is None:
        backend = storage_backend_name()
        if backend == "gdrive":
            _storage_backend = GoogleDriveStorage()
        elif backend == "local":
            _storage_backend = LocalStorage()
        else:
            raise StorageError(f"Unknown STORAGE_BACKEND '{backend}'")
    return _storage_backend


def max_upload_bytes() -> int:
    try:
        return int(float(os.getenv("MAX_FILE_SIZE_MB", "50")) * 1024 * 1024)
    except ValueError:
        return 50 * 1024 * 1024
