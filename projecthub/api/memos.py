"""
Memo API endpoints.

A memo is a daily note per user, project and type (``universal`` or
``short``); short memos are capped at 140 characters.
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
from projecthub.utils.dates import today_utc
from projecthub.utils.permissions import CAN_MANAGE_MEMOS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memos", tags=["memos"])


def _to_schema(memo: models.Memo) -> schemas.Memo:
    return schemas.Memo.model_validate(memo).model_copy(update={
        "project_name": memo.project.name if memo.project else None,
        "user_name": memo.user.name if memo.user else None,
    })


def _get_owned_memo(db: Session, memo_id: uuid.UUID, user: models.User, allow_admin: bool, is_admin: bool) -> models.Memo:
    memo = report_repo.get_memo(db, memo_id)
    if memo is None:
        raise HTTPException(status_code=404, detail="Memo not found")
    if memo.user_id != user.id and not (allow_admin and is_admin):
        raise HTTPException(status_code=403, detail="Forbidden")
    return memo


@router.get("", response_model=List[schemas.Memo])
def list_memos(
    project_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    date: Optional[dt.date] = None,
    memo_type: Optional[schemas.MemoType] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List memos, newest report date first.

    - **user_id**: admins only; everyone else always sees their own memos
    - **date**: a single report date (YYYY-MM-DD)
    """
    user, current_user = user_context
    if not current_user["is_admin"]:
        user_id = user.id
    memos = report_repo.get_memos(
        db,
        user_id=user_id,
        project_id=project_id,
        report_date=date,
        memo_type=memo_type.value if memo_type else None,
        skip=skip,
        limit=limit,
    )
    return [_to_schema(m) for m in memos]


@router.post("", response_model=schemas.Memo, status_code=status.HTTP_201_CREATED)
def create_memo(
    payload: schemas.MemoCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Submit a memo for a project the caller is assigned to.

    - **memo_type**: universal or short (default short)
    - **report_date**: defaults to today (UTC)
    """
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_MEMOS)
    project = project_repo.get_project(db, payload.project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    if not project_repo.is_project_member(db, project.id, user.id):
        raise HTTPException(status_code=403, detail="You are not assigned to this project")

    report_date = payload.report_date or today_utc()
    if report_repo.find_memo(
        db, user_id=user.id, project_id=project.id, report_date=report_date, memo_type=payload.memo_type.value
    ):
        raise HTTPException(status_code=409, detail="Memo already exists for this date and type")

    memo = report_repo.create_memo(
        db,
        user_id=user.id,
        project_id=project.id,
        report_date=report_date,
        memo_type=payload.memo_type.value,
        memo_content=payload.memo_content,
    )
    logger.info("memo_submitted: memo_id=%s project_id=%s user_id=%s", memo.id, project.id, user.id)
    get_notification_service(db).notify_memo_submitted(memo, user, project)
    return _to_schema(memo)


@router.get("/{memo_id}", response_model=schemas.Memo)
def get_memo(
    memo_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return _to_schema(_get_owned_memo(db, memo_id, user, allow_admin=True, is_admin=current_user["is_admin"]))


@router.put("/{memo_id}", response_model=schemas.Memo)
def update_memo(
    memo_id: uuid.UUID,
    payload: schemas.MemoUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    memo = _get_owned_memo(db, memo_id, user, allow_admin=False, is_admin=current_user["is_admin"])
    update_data = payload.model_dump(exclude_unset=True)
    if update_data.get("memo_type") is not None:
        update_data["memo_type"] = schemas.MemoType(update_data["memo_type"]).value

    new_type = update_data.get("memo_type") or memo.memo_type
    new_content = update_data.get("memo_content") or memo.memo_content
    if new_type == schemas.MemoType.short.value and len(new_content) > schemas.MEMO_MAX_LENGTH:
        raise HTTPException(
            status_code=422,
            detail=f"Short memos are limited to {schemas.MEMO_MAX_LENGTH} characters",
        )

    new_date = update_data.get("report_date") or memo.report_date
    if report_repo.find_memo(
        db, user_id=memo.user_id, project_id=memo.project_id, report_date=new_date, memo_type=new_type, exclude_id=memo.id
    ):
        raise HTTPException(status_code=409, detail="Memo already exists for this date and type")

    memo = report_repo.update_memo(db, memo, {k: v for k, v in update_data.items() if v is not None})
    return _to_schema(memo)


@router.delete("/{memo_id}", response_model=schemas.DeleteResponse)
def delete_memo(
    memo_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    memo = _get_owned_memo(db, memo_id, user, allow_admin=True, is_admin=current_user["is_admin"])
    report_repo.delete_memo(db, memo.id)
    return schemas.DeleteResponse(success=True)
