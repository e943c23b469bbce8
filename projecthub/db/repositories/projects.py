"""
Project and assignment repository functions.

Creating a project also creates its chat group; assignments are unique per
user/project pair and are reactivated rather than duplicated.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session

from projecthub.db import models, schemas
from projecthub.db.models import now_utc


def create_project(db: Session, project: schemas.ProjectCreate) -> models.Project:
    data = project.model_dump(exclude={"assigned_user_ids"})
    data["status"] = project.status.value
    db_project = models.Project(**data)
    db.add(db_project)
    db.flush()
    db.add(models.ChatGroup(name=db_project.name, project_id=db_project.id))
    for user_id in dict.fromkeys(project.assigned_user_ids):
        db.add(models.UserProjectAssignment(user_id=user_id, project_id=db_project.id))
    db.commit()
    db.refresh(db_project)
    return db_project


def get_project(db: Session, project_id: uuid.UUID) -> Optional[models.Project]:
    return db.query(models.Project).filter(models.Project.id == project_id).first()


def get_projects(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Tuple[models.Project, str]]:
    """Return (project, client_name) rows; restricted to assigned projects when user_id is given."""
    q = (
        db.query(models.Project, models.Client.name)
        .join(models.Client, models.Client.id == models.Project.client_id)
    )
    if user_id is not None:
        q = q.join(
            models.UserProjectAssignment,
            models.UserProjectAssignment.project_id == models.Project.id,
        ).filter(models.UserProjectAssignment.user_id == user_id)
    if status:
        q = q.filter(models.Project.status == status)
    return q.order_by(models.Project.created_at.desc()).offset(skip).limit(limit).all()


def update_project(db: Session, project_id: uuid.UUID, project: schemas.ProjectUpdate) -> Optional[models.Project]:
    db_project = get_project(db, project_id)
    if db_project:
        update_data = project.model_dump(exclude_unset=True)
        if update_data.get("status") is not None:
            update_data["status"] = schemas.ProjectStatus(update_data["status"]).value
        for key, value in update_data.items():
            setattr(db_project, key, value)
        if "name" in update_data:
            group = get_chat_group_for_project(db, project_id)
            if group:
                group.name = db_project.name
        db.commit()
        db.refresh(db_project)
    return db_project


def delete_project(db: Session, project_id: uuid.UUID) -> bool:
    db_project = get_project(db, project_id)
    if db_project:
        db.delete(db_project)
        db.commit()
        return True
    return False


def get_chat_group_for_project(db: Session, project_id: uuid.UUID) -> Optional[models.ChatGroup]:
    return db.query(models.ChatGroup).filter(models.ChatGroup.project_id == project_id).first()


# Assignments

def get_assignment(db: Session, project_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.UserProjectAssignment]:
    return (
        db.query(models.UserProjectAssignment)
        .filter(
            models.UserProjectAssignment.project_id == project_id,
            models.UserProjectAssignment.user_id == user_id,
        )
        .first()
    )


def is_project_member(db: Session, project_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    return get_assignment(db, project_id, user_id) is not None


def get_project_assignments(db: Session, project_id: uuid.UUID) -> List[Tuple[models.UserProjectAssignment, models.User]]:
    return (
        db.query(models.UserProjectAssignment, models.User)
        .join(models.User, models.User.id == models.UserProjectAssignment.user_id)
        .filter(models.UserProjectAssignment.project_id == project_id)
        .order_by(models.User.name)
        .all()
    )


def get_project_member_ids(db: Session, project_id: uuid.UUID) -> List[uuid.UUID]:
    rows = (
        db.query(models.UserProjectAssignment.user_id)
        .filter(models.UserProjectAssignment.project_id == project_id)
        .all()
    )
    return [row[0] for row in rows]


def get_user_assignments(
    db: Session,
    user_id: uuid.UUID,
    *,
    active_only: bool = False,
) -> List[Tuple[models.UserProjectAssignment, models.Project]]:
    q = (
        db.query(models.UserProjectAssignment, models.Project)
        .join(models.Project, models.Project.id == models.UserProjectAssignment.project_id)
        .filter(models.UserProjectAssignment.user_id == user_id)
    )
    if active_only:
        q = q.filter(models.UserProjectAssignment.is_active.is_(True))
    return q.order_by(models.Project.name).all()


def get_all_assignments(db: Session, *, active_only: bool = True):
    """Return (assignment, user, project) rows for every assignment."""
    q = (
        db.query(models.UserProjectAssignment, models.User, models.Project)
        .join(models.User, models.User.id == models.UserProjectAssignment.user_id)
        .join(models.Project, models.Project.id == models.UserProjectAssignment.project_id)
    )
    if active_only:
        q = q.filter(models.UserProjectAssignment.is_active.is_(True))
    return q.all()


def assign_user(db: Session, project_id: uuid.UUID, user_id: uuid.UUID) -> Tuple[models.UserProjectAssignment, bool]:
    """Assign a user to a project. Returns (assignment, created)."""
    existing = get_assignment(db, project_id, user_id)
    if existing:
        if not existing.is_active:
            existing.is_active = True
            existing.last_activated_at = now_utc()
            db.commit()
            db.refresh(existing)
        return existing, False
    db_assignment = models.UserProjectAssignment(project_id=project_id, user_id=user_id)
    db.add(db_assignment)
    db.commit()
    db.refresh(db_assignment)
    return db_assignment, True


def remove_assignment(db: Session, project_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    db_assignment = get_assignment(db, project_id, user_id)
    if db_assignment:
        db.delete(db_assignment)
        db.commit()
        return True
    return False


def set_assignment_active(db: Session, assignment: models.UserProjectAssignment, is_active: bool) -> models.UserProjectAssignment:
    assignment.is_active = is_active
    if is_active:
        assignment.last_activated_at = now_utc()
    db.commit()
    db.refresh(assignment)
    return assignment


def touch_last_read(db: Session, assignment: models.UserProjectAssignment) -> models.UserProjectAssignment:
    assignment.last_read_at = now_utc()
    db.commit()
    db.refresh(assignment)
    return assignment
