"""
Memo and EOD report repository functions.

Duplicate detection mirrors the unique indexes so routes can answer with a
409 before the database raises.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, List
from sqlalchemy.orm import Session

from projecthub.db import models


# Memos

def find_memo(
    db: Session,
    *,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    report_date: date,
    memo_type: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[models.Memo]:
    q = db.query(models.Memo).filter(
        models.Memo.user_id == user_id,
        models.Memo.project_id == project_id,
        models.Memo.report_date == report_date,
        models.Memo.memo_type == memo_type,
    )
    if exclude_id is not None:
        q = q.filter(models.Memo.id != exclude_id)
    return q.first()


def create_memo(
    db: Session,
    *,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    report_date: date,
    memo_type: str,
    memo_content: str,
) -> models.Memo:
    db_memo = models.Memo(
        user_id=user_id,
        project_id=project_id,
        report_date=report_date,
        memo_type=memo_type,
        memo_content=memo_content,
    )
    db.add(db_memo)
    db.commit()
    db.refresh(db_memo)
    return db_memo


def get_memo(db: Session, memo_id: uuid.UUID) -> Optional[models.Memo]:
    return db.query(models.Memo).filter(models.Memo.id == memo_id).first()


def get_memos(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    report_date: Optional[date] = None,
    memo_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
) -> List[models.Memo]:
    q = db.query(models.Memo)
    if user_id:
        q = q.filter(models.Memo.user_id == user_id)
    if project_id:
        q = q.filter(models.Memo.project_id == project_id)
    if report_date:
        q = q.filter(models.Memo.report_date == report_date)
    if memo_type:
        q = q.filter(models.Memo.memo_type == memo_type)
    if start_date:
        q = q.filter(models.Memo.report_date >= start_date)
    if end_date:
        q = q.filter(models.Memo.report_date <= end_date)
    q = q.order_by(models.Memo.report_date.desc(), models.Memo.created_at.desc()).offset(skip)
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def update_memo(db: Session, db_memo: models.Memo, update_data: dict) -> models.Memo:
    for key, value in update_data.items():
        setattr(db_memo, key, value)
    db.commit()
    db.refresh(db_memo)
    return db_memo


def delete_memo(db: Session, memo_id: uuid.UUID) -> bool:
    db_memo = get_memo(db, memo_id)
    if db_memo:
        db.delete(db_memo)
        db.commit()
        return True
    return False


# EOD reports

def find_eod(
    db: Session,
    *,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    report_date: date,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[models.EodReport]:
    q = db.query(models.EodReport).filter(
        models.EodReport.user_id == user_id,
        models.EodReport.project_id == project_id,
        models.EodReport.report_date == report_date,
    )
    if exclude_id is not None:
        q = q.filter(models.EodReport.id != exclude_id)
    return q.first()


def create_eod(
    db: Session,
    *,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
    report_date: date,
    actual_update: str,
    client_update: Optional[str] = None,
    hours_spent=None,
) -> models.EodReport:
    db_eod = models.EodReport(
        user_id=user_id,
        project_id=project_id,
        report_date=report_date,
        actual_update=actual_update,
        client_update=client_update,
        hours_spent=hours_spent,
    )
    db.add(db_eod)
    db.commit()
    db.refresh(db_eod)
    return db_eod


def get_eod(db: Session, eod_id: uuid.UUID) -> Optional[models.EodReport]:
    return db.query(models.EodReport).filter(models.EodReport.id == eod_id).first()


def get_eods(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    report_date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
) -> List[models.EodReport]:
    q = db.query(models.EodReport)
    if user_id:
        q = q.filter(models.EodReport.user_id == user_id)
    if project_id:
        q = q.filter(models.EodReport.project_id == project_id)
    if report_date:
        q = q.filter(models.EodReport.report_date == report_date)
    if start_date:
        q = q.filter(models.EodReport.report_date >= start_date)
    if end_date:
        q = q.filter(models.EodReport.report_date <= end_date)
    q = q.order_by(models.EodReport.report_date.desc(), models.EodReport.created_at.desc()).offset(skip)
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def update_eod(db: Session, db_eod: models.EodReport, update_data: dict) -> models.EodReport:
    for key, value in update_data.items():
        setattr(db_eod, key, value)
    db.commit()
    db.refresh(db_eod)
    return db_eod


def delete_eod(db: Session, eod_id: uuid.UUID) -> bool:
    db_eod = get_eod(db, eod_id)
    if db_eod:
        db.delete(db_eod)
        db.commit()
        return True
    return False
