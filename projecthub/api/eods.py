"""
End-of-day (EOD) report endpoints.

One report per user, project and date: an internal ``actual_update``, an
optional client-facing update and the hours spent.
"""
from typing import List, Optional
import uuid
import datetime as dt
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_permission
from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import reports as report_repo
from projecthub.services.notification_service import get_notification_service
from projecthub.utils.dates import start_of_week_monday, today_utc
from projecthub.utils.permissions import CAN_MANAGE_EODS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/eods", tags=["eods"])


def _to_schema(eod: models.EodReport) -> schemas.Eod:
    return schemas.Eod.model_validate(eod).model_copy(update={
        "project_name": eod.project.name if eod.project else None,
        "user_name": eod.user.name if eod.user else None,
    })


def _get_eod_or_404(db: Session, eod_id: uuid.UUID) -> models.EodReport:
    eod = report_repo.get_eod(db, eod_id)
    if eod is None:
        raise HTTPException(status_code=404, detail="EOD not found")
    return eod


@router.get("", response_model=List[schemas.Eod])
def list_eods(
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    date: Optional[dt.date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List EOD reports, newest report date first.

    - **user_id**: admins only; everyone else always sees their own reports
    - **date**: a single report date (YYYY-MM-DD)
    """
    user, current_user = user_context
    if not current_user["is_admin"]:
        user_id = user.id
    eods = report_repo.get_eods(db, user_id=user_id, project_id=project_id, report_date=date, skip=skip, limit=limit)
    return [_to_schema(e) for e in eods]


@router.get("/weekly", response_model=schemas.WeeklyEodResponse)
def weekly_eods(
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Reports of one user on one project from Monday of the current week through today."""
    user, current_user = user_context
    if project_id is None or user_id is None:
        raise HTTPException(status_code=400, detail="projectId and userId are required")
    if user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Forbidden")

    today = today_utc()
    week_start = start_of_week_monday(today)
    eods = report_repo.get_eods(
        db, user_id=user_id, project_id=project_id, start_date=week_start, end_date=today, limit=None
    )
    data = [_to_schema(e) for e in eods]
    return schemas.WeeklyEodResponse(
        data=data,
        meta=schemas.WeeklyEodMeta(week_start=week_start, week_end=today, total=len(data)),
    )


@router.post("", response_model=schemas.Eod, status_code=status.HTTP_201_CREATED)
def create_eod(
    payload: schemas.EodCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Submit an EOD report.

    - **actual_update**: internal update (required)
    - **client_update**: client-facing summary
    - **hours_spent**: 0.25 to 24
    - **report_date**: defaults to today (UTC)
    """
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_EODS)
    project = project_repo.get_project(db, payload.project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if not project_repo.is_project_member(db, project.id, user.id):
        raise HTTPException(status_code=403, detail="You are not assigned to this project")

    report_date = payload.report_date or today_utc()
    if report_repo.find_eod(db, user_id=user.id, project_id=project.id, report_date=report_date):
        raise HTTPException(status_code=409, detail="EOD already exists for this date")

    eod = report_repo.create_eod(
        db,
        user_id=user.id,
        project_id=project.id,
        report_date=report_date,
        actual_update=payload.actual_update,
        client_update=payload.client_update,
        hours_spent=payload.hours_spent,
    )
    logger.info("eod_submitted: eod_id=%s project_id=%s user_id=%s", eod.id, project.id, user.id)
    get_notification_service(db).notify_eod_submitted(eod, user, project)
    return _to_schema(eod)


@router.get("/{eod_id}", response_model=schemas.Eod)
def get_eod(
    eod_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    eod = _get_eod_or_404(db, eod_id)
    if eod.user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return _to_schema(eod)


@router.put("/{eod_id}", response_model=schemas.Eod)
def update_eod(
    eod_id: uuid.UUID,
    payload: schemas.EodUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _current_user = user_context
    eod = _get_eod_or_404(db, eod_id)
    if eod.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    update_data = payload.model_dump(exclude_unset=True)
    new_date = update_data.get("report_date") or eod.report_date
    if report_repo.find_eod(db, user_id=eod.user_id, project_id=eod.project_id, report_date=new_date, exclude_id=eod.id):
        raise HTTPException(status_code=409, detail="EOD already exists for this date")
    if update_data.get("report_date") is None:
        update_data.pop("report_date", None)
    if "actual_update" in update_data and update_data["actual_update"] is None:
        update_data.pop("actual_update")
    eod = report_repo.update_eod(db, eod, update_data)
    return _to_schema(eod)


@router.delete("/{eod_id}", response_model=schemas.DeleteResponse)
def delete_eod(
    eod_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    eod = _get_eod_or_404(db, eod_id)
    if eod.user_id != user.id and not current_user["is_admin"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    report_repo.delete_eod(db, eod.id)
    return schemas.DeleteResponse(success=True)
