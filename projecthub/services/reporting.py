"""
Missing-update detection and report calendars.

Everything here is read-only and derived from assignments plus the memo and
EOD tables. Each entry point accepts ``today`` so callers and tests can pin
the calendar; by default it is the current UTC date.
"""
import os
import uuid
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import reports as report_repo
from projecthub.utils.dates import (
    daterange,
    format_time_12h,
    is_weekday,
    is_weekend,
    month_calendar_range,
    parse_month,
    to_date,
    today_utc,
)
from projecthub.utils.permissions import CAN_MANAGE_EODS, CAN_MANAGE_MEMOS, has_permission

logger = logging.getLogger(__name__)

REPORT_TYPES = ("eod", "memo")
REPORT_PERMISSIONS = {"eod": CAN_MANAGE_EODS, "memo": CAN_MANAGE_MEMOS}
FALLBACK_VALID_START = date(2020, 1, 1)


def days_to_check() -> int:
    try:
        return max(0, int(os.getenv("MISSING_UPDATES_DAYS_TO_CHECK", "2")))
    except ValueError:
        logger.warning("invalid MISSING_UPDATES_DAYS_TO_CHECK, using 2")
        return 2


def assignment_covers(
    assignment: models.UserProjectAssignment,
    project: models.Project,
    day: date,
    *,
    respect_activation: bool = True,
) -> bool:
    """True when the user was expected to report on ``day`` for the project."""
    if day < to_date(assignment.assigned_at):
        return False
    if project.created_at is not None and day < to_date(project.created_at):
        return False
    if respect_activation and assignment.last_activated_at is not None:
        if day < to_date(assignment.last_activated_at):
            return False
    return True


def _memo_index(memos: List[models.Memo]) -> Set[Tuple[uuid.UUID, date, str]]:
    return {(m.project_id, m.report_date, m.memo_type) for m in memos}


def _eod_index(eods: List[models.EodReport]) -> Set[Tuple[uuid.UUID, date]]:
    return {(e.project_id, e.report_date) for e in eods}


def get_missing_updates(
    db: Session,
    user_id: uuid.UUID,
    *,
    today: Optional[date] = None,
    days: Optional[int] = None,
) -> List[schemas.MissingUpdate]:
    """Weekdays before today on which an active assignment lacks a memo or EOD."""
    today = today or today_utc()
    days = days_to_check() if days is None else days
    check_days = [today - timedelta(days=offset) for offset in range(1, days + 1)]
    check_days = [d for d in check_days if is_weekday(d)]
    if not check_days:
        return []

    assignments = project_repo.get_user_assignments(db, user_id, active_only=True)
    if not assignments:
        return []

    start, end = min(check_days), max(check_days)
    memos = _memo_index(report_repo.get_memos(db, user_id=user_id, start_date=start, end_date=end, limit=None))
    eods = _eod_index(report_repo.get_eods(db, user_id=user_id, start_date=start, end_date=end, limit=None))

    results = []
    for day in check_days:
        for assignment, project in assignments:
            if not assignment_covers(assignment, project, day):
                continue
            universal_missing = (project.id, day, "universal") not in memos
            short_missing = bool(project.is_memo_required) and (project.id, day, "short") not in memos
            eod_missing = (project.id, day) not in eods
            if not (universal_missing or short_missing or eod_missing):
                continue
            results.append(schemas.MissingUpdate(
                id=f"{project.id}-{day.isoformat()}",
                date=day,
                project_id=project.id,
                project_name=project.name,
                is_universal_missing=universal_missing,
                is_short_missing=short_missing,
                is_eod_missing=eod_missing,
            ))

    results.sort(key=lambda r: r.project_name)
    results.sort(key=lambda r: r.date, reverse=True)
    return results


def get_today_statuses(
    db: Session,
    user_id: uuid.UUID,
    *,
    today: Optional[date] = None,
) -> List[schemas.ProjectTodayStatus]:
    today = today or today_utc()
    assignments = project_repo.get_user_assignments(db, user_id, active_only=True)
    memos = _memo_index(report_repo.get_memos(db, user_id=user_id, report_date=today, limit=None))
    eods = _eod_index(report_repo.get_eods(db, user_id=user_id, report_date=today, limit=None))
    return [
        schemas.ProjectTodayStatus(
            project_id=project.id,
            project_name=project.name,
            is_memo_required=bool(project.is_memo_required),
            has_universal_today=(project.id, today, "universal") in memos,
            has_short_today=(project.id, today, "short") in memos,
            has_eod_today=(project.id, today) in eods,
        )
        for _, project in assignments
    ]


def get_updates_history(
    db: Session,
    project: models.Project,
    user_id: uuid.UUID,
    month: str,
    *,
    today: Optional[date] = None,
) -> schemas.UpdatesHistory:
    """Per-day memo/EOD coverage for one user on one project over a month.

    Raises:
        ValueError: if ``month`` is not ``YYYY-MM``
    """
    today = today or today_utc()
    month_start, month_end = parse_month(month)
    grid_start, grid_end = month_calendar_range(month_start, month_end)

    assignment = project_repo.get_assignment(db, project.id, user_id)
    candidates = [to_date(project.created_at)]
    if assignment is not None:
        candidates.append(to_date(assignment.assigned_at))
    candidates = [c for c in candidates if c is not None]
    valid_start = max(candidates) if candidates else FALLBACK_VALID_START

    memos = report_repo.get_memos(
        db, user_id=user_id, project_id=project.id, start_date=grid_start, end_date=grid_end, limit=None
    )
    eods = report_repo.get_eods(
        db, user_id=user_id, project_id=project.id, start_date=grid_start, end_date=grid_end, limit=None
    )
    memo_types: Dict[date, Set[str]] = {}
    for memo in memos:
        memo_types.setdefault(memo.report_date, set()).add(memo.memo_type)
    eod_days = {e.report_date for e in eods}

    days = []
    for day in daterange(grid_start, grid_end):
        types = memo_types.get(day, set())
        days.append(schemas.HistoryDay(
            date=day,
            has_memo=bool(types),
            has_universal="universal" in types,
            has_short="short" in types,
            has_eod=day in eod_days,
            is_today=day == today,
            is_other_month=not (month_start <= day <= month_end),
            is_valid_date=valid_start <= day <= today,
        ))

    in_month = [d for d in days if not d.is_other_month]
    valid_month_days = [d for d in in_month if d.is_valid_date]
    eods_on_valid = sum(1 for d in valid_month_days if d.has_eod)
    completion_rate = round(eods_on_valid / len(valid_month_days) * 100) if valid_month_days else 0

    stats = schemas.HistoryStats(
        memos_this_month=sum(1 for m in memos if month_start <= m.report_date <= month_end),
        eods_this_month=sum(1 for e in eods if month_start <= e.report_date <= month_end),
        completion_rate=completion_rate,
    )
    return schemas.UpdatesHistory(
        project_id=project.id,
        user_id=user_id,
        month=f"{month_start.year:04d}-{month_start.month:02d}",
        valid_start_date=valid_start,
        days=days,
        stats=stats,
    )


def _submissions(db: Session, report_type: str, start: date, end: date):
    if report_type == "eod":
        return report_repo.get_eods(db, start_date=start, end_date=end, limit=None)
    return report_repo.get_memos(db, start_date=start, end_date=end, limit=None)


def _reporting_assignments(db: Session, report_type: str):
    """Active assignments of users expected to file ``report_type`` reports.

    Admins pulled into a project (e.g. by reading its chat) are not counted.
    """
    permission = REPORT_PERMISSIONS[report_type]
    return [
        (a, user, project)
        for a, user, project in project_repo.get_all_assignments(db, active_only=True)
        if has_permission(user.role, permission)
    ]


def get_admin_calendar(
    db: Session,
    month: str,
    report_type: str = "eod",
    *,
    today: Optional[date] = None,
) -> List[schemas.CalendarDay]:
    """Submission and missed counts per day of the Sunday-start month grid.

    Raises:
        ValueError: on an invalid month or report type
    """
    if report_type not in REPORT_TYPES:
        raise ValueError(f"Invalid type '{report_type}'")
    today = today or today_utc()
    month_start, month_end = parse_month(month)
    grid_start, grid_end = month_calendar_range(month_start, month_end)

    eods = report_repo.get_eods(db, start_date=grid_start, end_date=grid_end, limit=None)
    memos = report_repo.get_memos(db, start_date=grid_start, end_date=grid_end, limit=None)
    current = eods if report_type == "eod" else memos
    assignments = _reporting_assignments(db, report_type)

    result = []
    for day in daterange(grid_start, grid_end):
        future = day > today
        weekend = is_weekend(day)
        day_current = [s for s in current if s.report_date == day]
        eod_users = {e.user_id for e in eods if e.report_date == day}
        memo_users = {m.user_id for m in memos if m.report_date == day}

        covering = {
            (a.user_id, a.project_id)
            for a, _, project in assignments
            if assignment_covers(a, project, day, respect_activation=False)
        }
        submitted_pairs = {(s.user_id, s.project_id) for s in day_current}

        missed = 0
        if not future and not weekend:
            missed = len(covering - submitted_pairs)

        result.append(schemas.CalendarDay(
            date=day,
            submitted_count=0 if future else len(day_current),
            missed_count=missed,
            user_count=0 if future else len(eod_users & memo_users),
            project_count=0 if future else len({pid for _, pid in covering}),
            is_weekend=weekend,
            is_future=future,
        ))
    return result


def get_day_details(
    db: Session,
    day: date,
    report_type: str = "eod",
    *,
    today: Optional[date] = None,
) -> List[schemas.DayDetail]:
    """Who submitted and who missed a report of ``report_type`` on ``day``.

    Raises:
        ValueError: on an invalid report type
    """
    if report_type not in REPORT_TYPES:
        raise ValueError(f"Invalid type '{report_type}'")
    today = today or today_utc()
    if day > today:
        return []

    submissions = {}
    for submission in _submissions(db, report_type, day, day):
        submissions.setdefault((submission.user_id, submission.project_id), submission)

    details = []
    for assignment, user, project in _reporting_assignments(db, report_type):
        if not assignment_covers(assignment, project, day, respect_activation=False):
            continue
        submission = submissions.get((user.id, project.id))
        created_at: Optional[datetime] = submission.created_at if submission else None
        details.append(schemas.DayDetail(
            id=submission.id if submission else None,
            user=user.name or user.email,
            user_id=user.id,
            project=project.name,
            project_id=project.id,
            submitted_at=format_time_12h(created_at),
            status="submitted" if submission else "missed",
        ))

    details.sort(key=lambda d: (d.status != "submitted", d.user.lower()))
    return details
