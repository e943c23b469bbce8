"""
Users API endpoints.

Admins manage every account; other users may only edit their own profile.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_admin
from projecthub.db import schemas
from projecthub.db.repositories import users as user_repo
from projecthub.audit import AuditAction, log_user
from projecthub.utils.permissions import validate_role

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[schemas.User])
def list_users(
    role: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List users ordered by name.

    - **role**: only users holding this role
    """
    return user_repo.get_users(db, skip=skip, limit=limit, role=role)


@router.post("", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    if user_repo.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
    db_user = user_repo.create_user(db, payload)
    log_user(
        db,
        actor_user_id=user.id,
        user_id=db_user.id,
        action=AuditAction.USER_CREATE,
        metadata={"email": db_user.email, "role": db_user.role},
    )
    return db_user


@router.get("/{user_id}", response_model=schemas.User)
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    db_user = user_repo.get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user


@router.put("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: uuid.UUID,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Update a user's profile or role.

    - **name**, **email**, **image**: profile fields
    - **role**: admin only; one of admin, developer, tester, designer
    """
    user, current_user = user_context
    is_self = user.id == user_id
    if not current_user["is_admin"] and not is_self:
        raise HTTPException(status_code=403, detail="Forbidden")

    db_user = user_repo.get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    role_changed = payload.role is not None and payload.role != db_user.role
    if payload.role is not None:
        try:
            validate_role(payload.role)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid role")
        if role_changed and not current_user["is_admin"]:
            raise HTTPException(status_code=403, detail="You cannot change your own role")

    if payload.email and payload.email != db_user.email:
        existing = user_repo.get_user_by_email(db, payload.email)
        if existing and existing.id != db_user.id:
            raise HTTPException(status_code=409, detail="User already exists")

    old_role = db_user.role
    updated = user_repo.update_user(db, user_id, payload)
    action = AuditAction.USER_ROLE_CHANGE if role_changed else AuditAction.USER_UPDATE
    metadata = {"fields": sorted(payload.model_dump(exclude_unset=True).keys())}
    if role_changed:
        metadata.update({"old_role": old_role, "new_role": updated.role})
    log_user(db, actor_user_id=user.id, user_id=user_id, action=action, metadata=metadata)
    return updated


@router.delete("/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    if user.id == user_id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    db_user = user_repo.get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    email = db_user.email
    user_repo.delete_user(db, user_id)
    log_user(db, actor_user_id=user.id, user_id=user_id, action=AuditAction.USER_DELETE, metadata={"email": email})
    return {"success": True}
