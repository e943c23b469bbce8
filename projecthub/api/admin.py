"""
Admin reporting endpoints: the submission calendar and per-day breakdown.
"""
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_admin
from projecthub.db import schemas
from projecthub.services import reporting
from projecthub.utils.dates import parse_date, parse_month

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _report_type(value: Optional[str]) -> str:
    report_type = (value or "eod").strip().lower()
    if report_type not in reporting.REPORT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid type")
    return report_type


@router.get("/calendar", response_model=List[schemas.CalendarDay])
def submission_calendar(
    month: Optional[str] = None,
    report_type: Optional[str] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Submitted and missed counts for every day of a month grid.

    - **month**: YYYY-MM (required)
    - **type**: eod (default) or memo
    """
    _user, current_user = user_context
    require_admin(current_user)
    if not month:
        raise HTTPException(status_code=400, detail="Month is required")
    report_type = _report_type(report_type)
    try:
        parse_month(month)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid month")
    return reporting.get_admin_calendar(db, month, report_type)


@router.get("/day-details", response_model=List[schemas.DayDetail])
def day_details(
    date: Optional[str] = None,
    report_type: Optional[str] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Who submitted and who missed on one day, submitted rows first.

    - **date**: YYYY-MM-DD (required)
    - **type**: eod (default) or memo
    """
    _user, current_user = user_context
    require_admin(current_user)
    if not date:
        raise HTTPException(status_code=400, detail="Date is required")
    report_type = _report_type(report_type)
    try:
        day = parse_date(date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date")
    return reporting.get_day_details(db, day, report_type)
