"""
Permission checks for route handlers.

Key helpers:
- require_permission(current_user, permission)
- require_admin(current_user)
- ensure_project_access(db, project_id, current_user)
"""
import uuid
from typing import Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.repositories import projects as project_repo
from projecthub.utils.permissions import has_permission


def require_permission(current_user: Optional[Dict[str, Any]], permission: str) -> None:
    """Raise 403 unless the caller's role holds ``permission``."""
    if not current_user or not has_permission(current_user.get("role"), permission):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def require_admin(current_user: Optional[Dict[str, Any]]) -> None:
    if not current_user or not current_user.get("is_admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def can_access_project(db: Session, project_id: uuid.UUID, current_user: Optional[Dict[str, Any]]) -> bool:
    """Admins reach every project; everyone else only projects they are assigned to."""
    if not current_user:
        return False
    if current_user.get("is_admin"):
        return True
    return project_repo.is_project_member(db, project_id, current_user["id"])


def ensure_project_access(
    db: Session,
    project_id: uuid.UUID,
    current_user: Optional[Dict[str, Any]],
    detail: str = "Forbidden",
) -> None:
    if not can_access_project(db, project_id, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
