"""
Project link endpoints (bookmarks to designs, docs, staging sites, ...).
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import ensure_project_access
from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import resources as resource_repo

router = APIRouter(prefix="/api/links", tags=["links"])


def _to_schema(link: models.Link, uploader_name: Optional[str] = None) -> schemas.Link:
    if uploader_name is None and link.uploader is not None:
        uploader_name = link.uploader.name
    return schemas.Link.model_validate(link).model_copy(update={"uploader_name": uploader_name})


def _get_link_for_write(db: Session, link_id: uuid.UUID, current_user) -> models.Link:
    link = resource_repo.get_link(db, link_id)
    if link is None:
        raise HTTPException(status_code=404, detail="Link not found")
    ensure_project_access(db, link.project_id, current_user)
    return link


@router.get("", response_model=List[schemas.Link])
def list_links(
    project_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List links, most recently updated first.

    - **project_id**: links of one project
    """
    user, current_user = user_context
    project_ids = None
    if project_id is not None:
        ensure_project_access(db, project_id, current_user)
    elif not current_user["is_admin"]:
        project_ids = [p.id for _, p in project_repo.get_user_assignments(db, user.id)]
    rows = resource_repo.get_links(db, project_id=project_id, project_ids=project_ids, skip=skip, limit=limit)
    return [_to_schema(link, name) for link, name in rows]


@router.post("", response_model=schemas.Link, status_code=status.HTTP_201_CREATED)
def create_link(
    payload: schemas.LinkCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Add a link to a project.

    - **title**: display name
    - **url**: http(s) URL
    - **category**: free-form grouping, stored as the description
    """
    user, current_user = user_context
    project = project_repo.get_project(db, payload.project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    ensure_project_access(db, project.id, current_user)
    link = resource_repo.create_link(
        db,
        name=payload.title.strip(),
        url=payload.url,
        description=payload.category,
        project=project,
        added_by=user.id,
    )
    return _to_schema(link, user.name)


@router.patch("/{link_id}", response_model=schemas.Link)
def update_link(
    link_id: uuid.UUID,
    payload: schemas.LinkUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    link = _get_link_for_write(db, link_id, current_user)
    update_data = payload.model_dump(exclude_unset=True)
    mapped = {}
    if update_data.get("title") is not None:
        mapped["name"] = update_data["title"].strip()
    if update_data.get("url") is not None:
        mapped["url"] = update_data["url"]
    if "category" in update_data:
        mapped["description"] = update_data["category"]
    link = resource_repo.update_link(db, link, mapped)
    return _to_schema(link)


@router.delete("/{link_id}")
def delete_link(
    link_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    link = _get_link_for_write(db, link_id, current_user)
    resource_repo.delete_link(db, link.id)
    return {"success": True}
