"""
Task board columns.

The three default columns are shared by every board and cannot be changed.
Other columns belong either to a project (every member sees them) or to a
single user (a personal column shown on all of that user's boards).
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import can_access_project, ensure_project_access
from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import tasks as task_repo

router = APIRouter(prefix="/api/columns", tags=["columns"])


def _get_column_for_write(db: Session, column_id: uuid.UUID, current_user, action: str) -> models.TaskColumn:
    column = task_repo.get_column(db, column_id)
    if column is None:
        raise HTTPException(status_code=404, detail="Column not found")
    if column.is_default:
        raise HTTPException(status_code=403, detail=f"Cannot {action} default columns")
    if current_user["is_admin"]:
        return column
    if column.project_id is not None and can_access_project(db, column.project_id, current_user):
        return column
    if column.user_id == current_user["id"]:
        return column
    raise HTTPException(status_code=403, detail="Forbidden")


@router.get("", response_model=List[schemas.TaskColumn])
def list_columns(
    project_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Columns for a board, ordered by position.

    - **project_id**: include that project's columns
    """
    user, current_user = user_context
    if project_id is not None:
        ensure_project_access(db, project_id, current_user)
    return task_repo.get_columns(db, user.id, project_id)


@router.post("", response_model=schemas.TaskColumn, status_code=status.HTTP_201_CREATED)
def create_column(
    payload: schemas.TaskColumnCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Add a column at the end of the caller's board.

    - **project_id**: a project column shared with every member
    - **user_id**: a personal column; defaults to the caller when no project is given
    """
    user, current_user = user_context
    if payload.project_id is not None:
        if project_repo.get_project(db, payload.project_id) is None:
            raise HTTPException(status_code=404, detail="Project not found")
        ensure_project_access(db, payload.project_id, current_user)
    if payload.user_id is not None and payload.user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    if payload.project_id is None and payload.user_id is None:
        payload = payload.model_copy(update={"user_id": user.id})
    return task_repo.create_column(db, payload, created_by=user.id)


@router.patch("/{column_id}", response_model=schemas.TaskColumn)
def update_column(
    column_id: uuid.UUID,
    payload: schemas.TaskColumnUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    column = _get_column_for_write(db, column_id, current_user, "modify")
    return task_repo.update_column(db, column, payload)


@router.delete("/{column_id}")
def delete_column(
    column_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Delete a column; its tasks are left without a column."""
    _user, current_user = user_context
    column = _get_column_for_write(db, column_id, current_user, "delete")
    task_repo.delete_column(db, column)
    return {"success": True, "message": "Column deleted successfully"}
