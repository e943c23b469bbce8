"""
Asset endpoints: metadata registration and file uploads.

Uploaded bytes go to the configured storage backend (local disk or Google
Drive) under ``{client}/{project}/{folder_type}/``; the asset row keeps the
backend key so deleting the asset also removes the stored object.
"""
from typing import List, Optional
import uuid
import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import can_access_project, ensure_project_access
from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import resources as resource_repo
from projecthub.services.storage import (
    FOLDER_TYPES,
    StorageError,
    build_asset_key,
    get_storage_backend,
    max_upload_bytes,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assets", tags=["assets"])

MODIFY_FORBIDDEN = "Forbidden: You don't have permission to modify this asset"


def _to_schema(asset: models.Asset, project_name: Optional[str] = None, uploader_name: Optional[str] = None) -> schemas.Asset:
    if project_name is None and asset.project is not None:
        project_name = asset.project.name
    if uploader_name is None and asset.uploader is not None:
        uploader_name = asset.uploader.name
    return schemas.Asset.model_validate(asset).model_copy(
        update={"project_name": project_name, "uploader_name": uploader_name}
    )


def _get_asset_for_write(db: Session, asset_id: uuid.UUID, current_user) -> models.Asset:
    asset = resource_repo.get_asset(db, asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    if not can_access_project(db, asset.project_id, current_user):
        raise HTTPException(status_code=403, detail=MODIFY_FORBIDDEN)
    return asset


def _get_project_for_upload(db: Session, project_id: uuid.UUID, current_user) -> models.Project:
    project = project_repo.get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    ensure_project_access(db, project.id, current_user)
    return project


@router.get("", response_model=List[schemas.Asset])
def list_assets(
    project_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List assets, newest first.

    - **project_id**: assets of one project
    """
    user, current_user = user_context
    project_ids = None
    if project_id is not None:
        ensure_project_access(db, project_id, current_user)
    elif not current_user["is_admin"]:
        project_ids = [p.id for _, p in project_repo.get_user_assignments(db, user.id)]
    rows = resource_repo.get_assets(db, project_id=project_id, project_ids=project_ids, skip=skip, limit=limit)
    return [_to_schema(asset, project_name, uploader_name) for asset, project_name, uploader_name in rows]


@router.post("", response_model=schemas.Asset, status_code=status.HTTP_201_CREATED)
def register_asset(
    payload: schemas.AssetCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Record an asset that already lives at ``file_url``."""
    user, current_user = user_context
    project = _get_project_for_upload(db, payload.project_id, current_user)
    asset = resource_repo.create_asset(
        db,
        name=payload.name.strip(),
        file_url=payload.file_url,
        file_type=payload.file_type,
        file_size=payload.file_size,
        project=project,
        uploaded_by=user.id,
    )
    return _to_schema(asset, project.name, user.name)


@router.post("/upload", response_model=schemas.Asset, status_code=status.HTTP_201_CREATED)
def upload_asset(
    file: Optional[UploadFile] = File(default=None),
    project_id: Optional[str] = Form(default=None),
    folder_type: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Upload a file into a project's client or internal folder.

    - **file**: the file (multipart)
    - **project_id**: target project
    - **folder_type**: "client" or "internal"
    """
    user, current_user = user_context
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    if not project_id or not folder_type:
        raise HTTPException(status_code=400, detail="Project ID and folder type are required")
    if folder_type not in FOLDER_TYPES:
        raise HTTPException(status_code=400, detail='Invalid folder type. Must be "client" or "internal"')
    try:
        project_uuid = uuid.UUID(project_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid project ID")

    limit = max_upload_bytes()
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="File too large")

    project = _get_project_for_upload(db, project_uuid, current_user)
    client_name = project.client.name if project.client else "unassigned"
    key = build_asset_key(client_name, project.name, folder_type, file.filename)
    try:
        stored = get_storage_backend().upload(key, data, content_type=file.content_type)
    except StorageError as exc:
        logger.error("asset_upload_failed: project_id=%s key=%s error=%s", project.id, key, exc)
        raise HTTPException(status_code=502, detail="Failed to store file")

    asset = resource_repo.create_asset(
        db,
        name=file.filename,
        file_url=stored.url,
        file_type=file.content_type,
        file_size=len(data),
        folder_type=folder_type,
        storage_key=stored.key,
        project=project,
        uploaded_by=user.id,
    )
    logger.info("asset_uploaded: asset_id=%s project_id=%s size=%d", asset.id, project.id, len(data))
    return _to_schema(asset, project.name, user.name)


@router.patch("/{asset_id}", response_model=schemas.Asset)
def update_asset(
    asset_id: uuid.UUID,
    payload: schemas.AssetUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    asset = _get_asset_for_write(db, asset_id, current_user)
    update_data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    asset = resource_repo.update_asset(db, asset, update_data)
    return _to_schema(asset)


@router.delete("/{asset_id}")
def delete_asset(
    asset_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    asset = _get_asset_for_write(db, asset_id, current_user)
    if asset.storage_key:
        try:
            get_storage_backend().delete(asset.storage_key)
        except StorageError as exc:
            logger.warning("asset_storage_delete_failed: asset_id=%s error=%s", asset.id, exc)
    resource_repo.delete_asset(db, asset.id)
    return {"success": True}
