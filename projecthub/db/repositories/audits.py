"""
Audit log repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List
from sqlalchemy.orm import Session

from projecthub.db import models, schemas


def create_audit_log(db: Session, audit_log: schemas.AuditLogCreate, actor_user_id: Optional[uuid.UUID]) -> models.AuditLog:
    db_audit_log = models.AuditLog(
        actor_user_id=actor_user_id,
        action_type=audit_log.action_type,
        status=audit_log.status,
        target_type=audit_log.target_type,
        target_id=audit_log.target_id,
        reason=audit_log.reason,
        metadata_json=audit_log.metadata,
    )
    db.add(db_audit_log)
    db.commit()
    db.refresh(db_audit_log)
    return db_audit_log


def get_audit_logs(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    target_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.AuditLog]:
    q = db.query(models.AuditLog)
    if user_id:
        q = q.filter(models.AuditLog.actor_user_id == user_id)
    if target_type:
        q = q.filter(models.AuditLog.target_type == target_type)
    return q.order_by(models.AuditLog.created_at.desc()).offset(skip).limit(limit).all()
