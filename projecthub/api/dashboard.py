"""
Dashboard endpoints for the signed-in user.

Both views are computed on read from assignments, memos and EOD reports.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.db import schemas
from projecthub.services import reporting
from projecthub.utils.permissions import CAN_MANAGE_EODS, has_permission

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/missing-updates", response_model=List[schemas.MissingUpdate])
def missing_updates(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Recent weekdays on which the caller still owes a memo or EOD.

    The look-back window is ``MISSING_UPDATES_DAYS_TO_CHECK`` days (default 2).
    Roles that do not file reports owe nothing.
    """
    user, _current_user = user_context
    if not has_permission(user.role, CAN_MANAGE_EODS):
        return []
    return reporting.get_missing_updates(db, user.id)


@router.get("/project-statuses", response_model=List[schemas.ProjectTodayStatus])
def project_statuses(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _current_user = user_context
    return reporting.get_today_statuses(db, user.id)
