"""
Role catalogue endpoints.

Role names are restricted to the built-in set; the table exists so admins can
see and curate which roles are offered.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_admin
from projecthub.db import schemas
from projecthub.db.repositories import users as user_repo
from projecthub.audit import AuditAction, log

router = APIRouter(prefix="/api/roles", tags=["roles"])


@router.get("", response_model=List[schemas.Role])
def list_roles(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    return user_repo.get_roles(db)


@router.post("", response_model=schemas.Role, status_code=status.HTTP_201_CREATED)
def create_role(
    payload: schemas.RoleCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    if user_repo.get_role_by_name(db, payload.name.value):
        raise HTTPException(status_code=409, detail="Role already exists")
    role = user_repo.create_role(db, payload.name.value)
    log(db, action=AuditAction.ROLE_CREATE, target_type="role", target_id=role.id,
        actor_user_id=user.id, metadata={"name": role.name})
    return role


@router.put("/{role_id}", response_model=schemas.Role)
def update_role(
    role_id: uuid.UUID,
    payload: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    role = user_repo.get_role(db, role_id)
    if role is None:
        raise HTTPException(status_code=404, detail="Role not found")
    existing = user_repo.get_role_by_name(db, payload.name.value)
    if existing and existing.id != role_id:
        raise HTTPException(status_code=409, detail="Role name already exists")
    old_name = role.name
    role = user_repo.update_role(db, role_id, payload.name.value)
    log(db, action=AuditAction.ROLE_UPDATE, target_type="role", target_id=role.id,
        actor_user_id=user.id, metadata={"old_name": old_name, "name": role.name})
    return role


@router.delete("/{role_id}")
def delete_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    if not user_repo.delete_role(db, role_id):
        raise HTTPException(status_code=404, detail="Role not found")
    log(db, action=AuditAction.ROLE_DELETE, target_type="role", target_id=role_id, actor_user_id=user.id)
    return {"success": True}
