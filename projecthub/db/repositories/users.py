"""
User and role repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List
from sqlalchemy.orm import Session

from projecthub.db import models, schemas
from projecthub.utils.permissions import ALLOWED_ROLES, ROLE_ADMIN


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def get_users(db: Session, skip: int = 0, limit: int = 100, role: Optional[str] = None) -> List[models.User]:
    q = db.query(models.User)
    if role:
        q = q.filter(models.User.role == role)
    return q.order_by(models.User.name, models.User.email).offset(skip).limit(limit).all()


def get_users_by_ids(db: Session, user_ids) -> List[models.User]:
    ids = list(user_ids)
    if not ids:
        return []
    return db.query(models.User).filter(models.User.id.in_(ids)).all()


def get_admin_users(db: Session) -> List[models.User]:
    return db.query(models.User).filter(models.User.role == ROLE_ADMIN).all()


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    db_user = models.User(
        email=user.email,
        name=user.name or user.email.split("@")[0],
        image=user.image,
        role=user.role.value if hasattr(user.role, "value") else user.role,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: uuid.UUID, user: schemas.UserUpdate) -> Optional[models.User]:
    db_user = get_user(db, user_id)
    if db_user:
        update_data = user.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_user, key, value)
        db.commit()
        db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: uuid.UUID) -> bool:
    db_user = get_user(db, user_id)
    if db_user:
        db.delete(db_user)
        db.commit()
        return True
    return False


# Roles

def get_roles(db: Session) -> List[models.Role]:
    return db.query(models.Role).order_by(models.Role.name).all()


def get_role(db: Session, role_id: uuid.UUID) -> Optional[models.Role]:
    return db.query(models.Role).filter(models.Role.id == role_id).first()


def get_role_by_name(db: Session, name: str) -> Optional[models.Role]:
    return db.query(models.Role).filter(models.Role.name == name).first()


def create_role(db: Session, name: str) -> models.Role:
    db_role = models.Role(name=name)
    db.add(db_role)
    db.commit()
    db.refresh(db_role)
    return db_role


def update_role(db: Session, role_id: uuid.UUID, name: str) -> Optional[models.Role]:
    db_role = get_role(db, role_id)
    if db_role:
        db_role.name = name
        db.commit()
        db.refresh(db_role)
    return db_role


def delete_role(db: Session, role_id: uuid.UUID) -> bool:
    db_role = get_role(db, role_id)
    if db_role:
        db.delete(db_role)
        db.commit()
        return True
    return False


def ensure_default_roles(db: Session) -> List[models.Role]:
    """Insert any of the built-in roles that are missing."""
    existing = {r.name for r in db.query(models.Role).all()}
    for name in sorted(ALLOWED_ROLES - existing):
        db.add(models.Role(name=name))
    if existing != set(ALLOWED_ROLES):
        db.commit()
    return get_roles(db)
