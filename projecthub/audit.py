"""
Audit logging helpers and enums.

Centralized helpers to persist normalized audit records with consistent
schema; includes convenience wrappers per target type.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from projecthub.db import schemas
from projecthub.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Client
    CLIENT_CREATE = "client_create"
    CLIENT_UPDATE = "client_update"
    CLIENT_DELETE = "client_delete"
    # Project
    PROJECT_CREATE = "project_create"
    PROJECT_UPDATE = "project_update"
    PROJECT_DELETE = "project_delete"
    # Assignment
    MEMBER_ADD = "member_add"
    MEMBER_REMOVE = "member_remove"
    MEMBER_TOGGLE_ACTIVE = "member_toggle_active"
    # User
    USER_CREATE = "user_create"
    USER_UPDATE = "user_update"
    USER_DELETE = "user_delete"
    USER_ROLE_CHANGE = "user_role_change"
    # Role
    ROLE_CREATE = "role_create"
    ROLE_UPDATE = "role_update"
    ROLE_DELETE = "role_delete"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper.

    Ensures consistent schema and a single place for enrichment.
    """
    # Persist pure string values, not Enum reprs (avoid 'AuditAction.XYZ')
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log, actor_user_id=actor_user_id)


def log_client(db: Session, *, actor_user_id: uuid.UUID, client_id: uuid.UUID, action: AuditAction, name: Optional[str] = None):
    return log(
        db,
        action=action,
        target_type="client",
        target_id=client_id,
        actor_user_id=actor_user_id,
        metadata={"name": name} if name else None,
    )


def log_project(db: Session, *, actor_user_id: uuid.UUID, project_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="project",
        target_id=project_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


def log_user(db: Session, *, actor_user_id: uuid.UUID, user_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="user",
        target_id=user_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "log_client", "log_project", "log_user"]
