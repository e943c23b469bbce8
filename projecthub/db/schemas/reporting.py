"""Derived views over assignments and daily reports."""
import uuid
import datetime as dt
from typing import Optional, List
from pydantic import BaseModel


class MissingUpdate(BaseModel):
    id: str
    date: dt.date
    project_id: uuid.UUID
    project_name: str
    is_universal_missing: bool
    is_short_missing: bool
    is_eod_missing: bool


class ProjectTodayStatus(BaseModel):
    project_id: uuid.UUID
    project_name: str
    is_memo_required: bool
    has_universal_today: bool
    has_short_today: bool
    has_eod_today: bool


class HistoryDay(BaseModel):
    date: dt.date
    has_memo: bool
    has_universal: bool
    has_short: bool
    has_eod: bool
    is_today: bool
    is_other_month: bool
    is_valid_date: bool


class HistoryStats(BaseModel):
    memos_this_month: int
    eods_this_month: int
    completion_rate: int


class UpdatesHistory(BaseModel):
    project_id: uuid.UUID
    user_id: uuid.UUID
    month: str
    valid_start_date: dt.date
    days: List[HistoryDay]
    stats: HistoryStats


class CalendarDay(BaseModel):
    date: dt.date
    submitted_count: int
    missed_count: int
    user_count: int
    project_count: int
    is_weekend: bool
    is_future: bool


class DayDetail(BaseModel):
    # The submission id, or None when the report was missed
    id: Optional[uuid.UUID] = None
    user: str
    user_id: uuid.UUID
    project: str
    project_id: uuid.UUID
    submitted_at: str
    status: str
