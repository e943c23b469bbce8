"""
Audit log API endpoints.

Admins can page through the audit trail, newest first.
"""
from typing import Optional, List
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.db import schemas
from projecthub.db.repositories import audits as audit_repo
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_admin

router = APIRouter(prefix="/api/audits", tags=["audits"])


@router.get("", response_model=List[schemas.AuditLog])
def list_audit_logs(
    user_id: Optional[uuid.UUID] = None,
    target_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_admin(current_user)
    return audit_repo.get_audit_logs(db, user_id=user_id, target_type=target_type, skip=skip, limit=limit)
