import uuid
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MEMO_MAX_LENGTH = 140


class MemoType(str, Enum):
    universal = "universal"
    short = "short"


def _check_memo_length(content: Optional[str], memo_type) -> None:
    if content is None:
        return
    if memo_type == MemoType.short and len(content) > MEMO_MAX_LENGTH:
        raise ValueError(f"Short memos are limited to {MEMO_MAX_LENGTH} characters")


class MemoCreate(BaseModel):
    project_id: uuid.UUID
    memo_content: str = Field(min_length=1)
    memo_type: MemoType = MemoType.short
    report_date: Optional[dt.date] = None

    @model_validator(mode="after")
    def _check_length(self):
        _check_memo_length(self.memo_content, self.memo_type)
        return self


class MemoUpdate(BaseModel):
    memo_content: Optional[str] = Field(default=None, min_length=1)
    memo_type: Optional[MemoType] = None
    report_date: Optional[dt.date] = None


class Memo(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    report_date: dt.date
    memo_type: str
    memo_content: str
    project_name: Optional[str] = None
    user_name: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    model_config = ConfigDict(from_attributes=True)


class EodCreate(BaseModel):
    project_id: uuid.UUID
    actual_update: str
    client_update: Optional[str] = None
    hours_spent: Optional[Decimal] = Field(default=None, ge=Decimal("0.25"), le=Decimal("24"))
    report_date: Optional[dt.date] = None

    @field_validator("actual_update")
    @classmethod
    def _check_actual(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Internal update required")
        return v


class EodUpdate(BaseModel):
    actual_update: Optional[str] = None
    client_update: Optional[str] = None
    hours_spent: Optional[Decimal] = Field(default=None, ge=Decimal("0.25"), le=Decimal("24"))
    report_date: Optional[dt.date] = None

    @field_validator("actual_update")
    @classmethod
    def _check_actual(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Internal update required")
        return v


class Eod(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    report_date: dt.date
    client_update: Optional[str] = None
    actual_update: str
    hours_spent: Optional[float] = None
    project_name: Optional[str] = None
    user_name: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    model_config = ConfigDict(from_attributes=True)


class WeeklyEodMeta(BaseModel):
    week_start: dt.date
    week_end: dt.date
    total: int


class WeeklyEodResponse(BaseModel):
    data: List[Eod]
    meta: WeeklyEodMeta


class DeleteResponse(BaseModel):
    success: bool
