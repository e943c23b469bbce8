"""
Link and asset repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session

from projecthub.db import models


# Links

def create_link(
    db: Session,
    *,
    name: str,
    url: str,
    description: Optional[str],
    project: models.Project,
    added_by: uuid.UUID,
) -> models.Link:
    db_link = models.Link(
        name=name,
        url=url,
        description=description,
        project_id=project.id,
        client_id=project.client_id,
        added_by=added_by,
    )
    db.add(db_link)
    db.commit()
    db.refresh(db_link)
    return db_link


def get_link(db: Session, link_id: uuid.UUID) -> Optional[models.Link]:
    return db.query(models.Link).filter(models.Link.id == link_id).first()


def get_links(
    db: Session,
    *,
    project_id: Optional[uuid.UUID] = None,
    project_ids: Optional[List[uuid.UUID]] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Tuple[models.Link, Optional[str]]]:
    q = (
        db.query(models.Link, models.User.name)
        .outerjoin(models.User, models.User.id == models.Link.added_by)
    )
    if project_id:
        q = q.filter(models.Link.project_id == project_id)
    if project_ids is not None:
        q = q.filter(models.Link.project_id.in_(project_ids))
    return q.order_by(models.Link.updated_at.desc()).offset(skip).limit(limit).all()


def update_link(db: Session, db_link: models.Link, update_data: dict) -> models.Link:
    for key, value in update_data.items():
        setattr(db_link, key, value)
    db.commit()
    db.refresh(db_link)
    return db_link


def delete_link(db: Session, link_id: uuid.UUID) -> bool:
    db_link = get_link(db, link_id)
    if db_link:
        db.delete(db_link)
        db.commit()
        return True
    return False


# Assets

def create_asset(
    db: Session,
    *,
    name: str,
    file_url: str,
    project: models.Project,
    uploaded_by: uuid.UUID,
    file_type: Optional[str] = None,
    file_size: Optional[int] = None,
    folder_type: Optional[str] = None,
    storage_key: Optional[str] = None,
) -> models.Asset:
    db_asset = models.Asset(
        name=name,
        file_url=file_url,
        file_type=file_type,
        file_size=file_size,
        folder_type=folder_type,
        storage_key=storage_key,
        project_id=project.id,
        client_id=project.client_id,
        uploaded_by=uploaded_by,
    )
    db.add(db_asset)
    db.commit()
    db.refresh(db_asset)
    return db_asset


def get_asset(db: Session, asset_id: uuid.UUID) -> Optional[models.Asset]:
    return db.query(models.Asset).filter(models.Asset.id == asset_id).first()


def get_assets(
    db: Session,
    *,
    project_id: Optional[uuid.UUID] = None,
    project_ids: Optional[List[uuid.UUID]] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Tuple[models.Asset, str, Optional[str]]]:
    """Return (asset, project_name, uploader_name) rows, newest first."""
    q = (
        db.query(models.Asset, models.Project.name, models.User.name)
        .join(models.Project, models.Project.id == models.Asset.project_id)
        .outerjoin(models.User, models.User.id == models.Asset.uploaded_by)
    )
    if project_id:
        q = q.filter(models.Asset.project_id == project_id)
    if project_ids is not None:
        q = q.filter(models.Asset.project_id.in_(project_ids))
    return q.order_by(models.Asset.created_at.desc()).offset(skip).limit(limit).all()


def update_asset(db: Session, db_asset: models.Asset, update_data: dict) -> models.Asset:
    for key, value in update_data.items():
        setattr(db_asset, key, value)
    db.commit()
    db.refresh(db_asset)
    return db_asset


def delete_asset(db: Session, asset_id: uuid.UUID) -> bool:
    db_asset = get_asset(db, asset_id)
    if db_asset:
        db.delete(db_asset)
        db.commit()
        return True
    return False
