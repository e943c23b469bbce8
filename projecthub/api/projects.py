"""
Project API endpoints.

Covers project CRUD, membership (user/project assignments), the per-user
active toggle and the per-day update history.
"""
from typing import List, Optional
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_permission, ensure_project_access
from projecthub.db import models, schemas
from projecthub.db.repositories import clients as client_repo
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import users as user_repo
from projecthub.audit import AuditAction, log_project
from projecthub.services.notification_service import get_notification_service
from projecthub.services.realtime import EVENT_PROJECT_CREATED, EVENT_PROJECT_DELETED, manager
from projecthub.services import reporting
from projecthub.utils.dates import today_utc
from projecthub.utils.permissions import CAN_MANAGE_PROJECTS, CAN_DELETE_PROJECTS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _to_schema(project: models.Project, client_name: Optional[str] = None) -> schemas.Project:
    if client_name is None and project.client is not None:
        client_name = project.client.name
    return schemas.Project.model_validate(project).model_copy(update={"client_name": client_name})


def _members(db: Session, project_id: uuid.UUID) -> List[schemas.ProjectMember]:
    return [
        schemas.ProjectMember(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_active=assignment.is_active,
            assigned_at=assignment.assigned_at,
            last_activated_at=assignment.last_activated_at,
        )
        for assignment, user in project_repo.get_project_assignments(db, project_id)
    ]


def _get_project_or_404(db: Session, project_id: uuid.UUID) -> models.Project:
    project = project_repo.get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("", response_model=List[schemas.Project])
def list_projects(
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List projects visible to the caller.

    - **status**: active, completed or on-hold
    """
    user, current_user = user_context
    user_filter = None if current_user["is_admin"] else user.id
    rows = project_repo.get_projects(db, user_id=user_filter, status=status, skip=skip, limit=limit)
    return [_to_schema(project, client_name) for project, client_name in rows]


@router.post("", response_model=schemas.ProjectDetail, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Create a project with its chat group and initial assignments.

    - **client_id**: owning client
    - **assigned_user_ids**: users assigned (and notified) on creation
    """
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_PROJECTS)
    if client_repo.get_client(db, payload.client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found")
    assignees = user_repo.get_users_by_ids(db, payload.assigned_user_ids)
    if len(assignees) != len(set(payload.assigned_user_ids)):
        raise HTTPException(status_code=404, detail="User not found")

    project = project_repo.create_project(db, payload)
    log_project(
        db,
        actor_user_id=user.id,
        project_id=project.id,
        action=AuditAction.PROJECT_CREATE,
        metadata={"name": project.name, "assigned_user_ids": [str(a.id) for a in assignees]},
    )

    notifications = get_notification_service(db)
    for assignee in assignees:
        notifications.notify_project_assigned(assignee, project, assigned_by_name=user.name or user.email)
    notifications.notify_project_created(project, user)

    body = _to_schema(project)
    manager.emit(None, EVENT_PROJECT_CREATED, {
        "project_id": project.id,
        "project": body.model_dump(),
        "assigned_user_ids": [a.id for a in assignees],
    })
    return schemas.ProjectDetail(**body.model_dump(), members=_members(db, project.id))


@router.get("/{project_id}", response_model=schemas.ProjectDetail)
def get_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    project = _get_project_or_404(db, project_id)
    ensure_project_access(db, project_id, current_user)
    return schemas.ProjectDetail(**_to_schema(project).model_dump(), members=_members(db, project_id))


@router.patch("/{project_id}", response_model=schemas.Project)
def update_project(
    project_id: uuid.UUID,
    payload: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_PROJECTS)
    _get_project_or_404(db, project_id)
    if payload.client_id is not None and client_repo.get_client(db, payload.client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found")
    project = project_repo.update_project(db, project_id, payload)
    log_project(
        db,
        actor_user_id=user.id,
        project_id=project_id,
        action=AuditAction.PROJECT_UPDATE,
        metadata={"fields": sorted(payload.model_dump(exclude_unset=True).keys())},
    )
    return _to_schema(project)


@router.delete("/{project_id}")
def delete_project(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_permission(current_user, CAN_DELETE_PROJECTS)
    project = _get_project_or_404(db, project_id)
    name = project.name
    project_repo.delete_project(db, project_id)
    log_project(db, actor_user_id=user.id, project_id=project_id, action=AuditAction.PROJECT_DELETE, metadata={"name": name})
    manager.emit(None, EVENT_PROJECT_DELETED, {"project_id": project_id})
    return {"success": True}


# Membership

@router.get("/{project_id}/members", response_model=List[schemas.ProjectMember])
def list_members(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    _get_project_or_404(db, project_id)
    ensure_project_access(db, project_id, current_user)
    return _members(db, project_id)


@router.post("/{project_id}/members", response_model=schemas.ProjectMember, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: uuid.UUID,
    payload: schemas.MemberAdd,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Assign a user to the project; re-assigning an inactive member reactivates them."""
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_PROJECTS)
    project = _get_project_or_404(db, project_id)
    member = user_repo.get_user(db, payload.user_id)
    if member is None:
        raise HTTPException(status_code=404, detail="User not found")

    assignment, created = project_repo.assign_user(db, project_id, member.id)
    log_project(
        db,
        actor_user_id=user.id,
        project_id=project_id,
        action=AuditAction.MEMBER_ADD,
        metadata={"user_id": str(member.id), "created": created},
    )
    if created:
        get_notification_service(db).notify_project_assigned(member, project, assigned_by_name=user.name or user.email)
    return schemas.ProjectMember(
        user_id=member.id,
        name=member.name,
        email=member.email,
        role=member.role,
        is_active=assignment.is_active,
        assigned_at=assignment.assigned_at,
        last_activated_at=assignment.last_activated_at,
    )


@router.delete("/{project_id}/members/{user_id}")
def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_PROJECTS)
    if not project_repo.remove_assignment(db, project_id, user_id):
        raise HTTPException(status_code=404, detail="Assignment not found")
    log_project(
        db,
        actor_user_id=user.id,
        project_id=project_id,
        action=AuditAction.MEMBER_REMOVE,
        metadata={"user_id": str(user_id)},
    )
    return {"success": True}


@router.get("/{project_id}/assignment", response_model=schemas.AssignmentStatus)
def get_assignment(
    project_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    if user_id is None:
        raise HTTPException(status_code=400, detail="User ID is required")
    assignment = project_repo.get_assignment(db, project_id, user_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return schemas.AssignmentStatus(assigned_at=assignment.assigned_at, is_active=assignment.is_active)


@router.post("/{project_id}/toggle-active", response_model=schemas.ToggleActiveResponse)
def toggle_active(
    project_id: uuid.UUID,
    payload: schemas.ToggleActiveRequest,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Mark a project active or inactive for a user.

    - **is_active**: new state
    - **user_id**: target user (admins only; defaults to the caller)
    """
    user, current_user = user_context
    target_user_id = payload.user_id or user.id
    if target_user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="You can only manage your own active projects")

    project = _get_project_or_404(db, project_id)
    if payload.is_active and project.status != schemas.ProjectStatus.active.value:
        raise HTTPException(status_code=403, detail=f"Cannot activate project because it is {project.status}")

    assignment = project_repo.get_assignment(db, project_id, target_user_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")

    assignment = project_repo.set_assignment_active(db, assignment, payload.is_active)
    log_project(
        db,
        actor_user_id=user.id,
        project_id=project_id,
        action=AuditAction.MEMBER_TOGGLE_ACTIVE,
        metadata={"user_id": str(target_user_id), "is_active": assignment.is_active},
    )
    return schemas.ToggleActiveResponse(success=True, is_active=assignment.is_active)


@router.get("/{project_id}/updates-history", response_model=schemas.UpdatesHistory)
def updates_history(
    project_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = None,
    month: Optional[str] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Per-day memo and EOD coverage for a user on this project.

    - **user_id**: defaults to the caller; other users require admin
    - **month**: YYYY-MM, defaults to the current month
    """
    user, current_user = user_context
    target_user_id = user_id or user.id
    if target_user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    project = _get_project_or_404(db, project_id)
    if month is None:
        today = today_utc()
        month = f"{today.year:04d}-{today.month:02d}"
    try:
        return reporting.get_updates_history(db, project, target_user_id, month)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid month")
