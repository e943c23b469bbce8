"""
Task, task assignment and comment repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Iterable
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from projecthub.db import models, schemas
from projecthub.utils.short_id import generate_short_id, normalize_short_id

_SHORT_ID_ATTEMPTS = 10


def _unique_short_id(db: Session) -> str:
    for _ in range(_SHORT_ID_ATTEMPTS):
        candidate = generate_short_id()
        taken = db.query(models.Task.id).filter(models.Task.short_id == candidate).first()
        if not taken:
            return candidate
    raise RuntimeError("Could not allocate a unique task id")


def _replace_assignees(db: Session, task: models.Task, user_ids: Iterable[uuid.UUID]) -> None:
    task.assignments.clear()
    db.flush()
    for user_id in dict.fromkeys(user_ids):
        task.assignments.append(models.UserTaskAssignment(user_id=user_id))


def create_task(db: Session, task: schemas.TaskCreate, created_by: Optional[uuid.UUID] = None) -> models.Task:
    data = task.model_dump(exclude={"assigned_user_ids"})
    data["status"] = task.status.value
    data["priority"] = task.priority.value
    siblings = db.query(func.max(models.Task.position))
    if task.column_id:
        siblings = siblings.filter(models.Task.column_id == task.column_id)
    else:
        siblings = siblings.filter(models.Task.project_id == task.project_id)
    if task.parent_task_id:
        siblings = siblings.filter(models.Task.parent_task_id == task.parent_task_id)
    else:
        siblings = siblings.filter(models.Task.parent_task_id.is_(None))
    max_position = siblings.scalar()
    db_task = models.Task(
        **data,
        short_id=_unique_short_id(db),
        position=0 if max_position is None else max_position + 1,
        created_by=created_by,
    )
    db.add(db_task)
    db.flush()
    _replace_assignees(db, db_task, task.assigned_user_ids)
    db.commit()
    db.refresh(db_task)
    return db_task


def get_task(db: Session, task_id: uuid.UUID) -> Optional[models.Task]:
    return db.query(models.Task).filter(models.Task.id == task_id).first()


def get_task_by_short_id(db: Session, short_id: str) -> Optional[models.Task]:
    return db.query(models.Task).filter(models.Task.short_id == normalize_short_id(short_id)).first()


def get_tasks(
    db: Session,
    *,
    project_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    project_ids: Optional[List[uuid.UUID]] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Task]:
    q = db.query(models.Task)
    if project_id:
        q = q.filter(models.Task.project_id == project_id)
    if project_ids is not None:
        q = q.filter(models.Task.project_id.in_(project_ids))
    if status:
        q = q.filter(models.Task.status == status)
    return q.order_by(models.Task.created_at.desc()).offset(skip).limit(limit).all()


def get_subtasks(db: Session, parent_task_id: uuid.UUID) -> List[models.Task]:
    return (
        db.query(models.Task)
        .filter(models.Task.parent_task_id == parent_task_id)
        .order_by(models.Task.position, models.Task.created_at)
        .all()
    )


def update_task(db: Session, task_id: uuid.UUID, task: schemas.TaskUpdate) -> Optional[models.Task]:
    db_task = get_task(db, task_id)
    if db_task:
        update_data = task.model_dump(exclude_unset=True)
        assigned_user_ids = update_data.pop("assigned_user_ids", None)
        for key, value in update_data.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(db_task, key, value)
        if assigned_user_ids is not None:
            _replace_assignees(db, db_task, assigned_user_ids)
        db.commit()
        db.refresh(db_task)
    return db_task


def _shift_positions(db: Session, column_id: uuid.UUID, delta: int, start: int, end: Optional[int] = None) -> None:
    q = db.query(models.Task).filter(
        models.Task.column_id == column_id,
        models.Task.position >= start,
    )
    if end is not None:
        q = q.filter(models.Task.position <= end)
    q.update({models.Task.position: models.Task.position + delta}, synchronize_session=False)


def reorder_task(db: Session, task: models.Task, destination_column_id: uuid.UUID, position: int) -> bool:
    """Move ``task`` to ``position`` in the destination column, shifting its neighbours.

    Returns False when the task is already there.
    """
    old_position = task.position or 0
    source_column_id = task.column_id

    if source_column_id == destination_column_id:
        if old_position == position:
            return False
        if old_position < position:
            _shift_positions(db, destination_column_id, -1, old_position + 1, position)
        else:
            _shift_positions(db, destination_column_id, 1, position, old_position - 1)
    else:
        if source_column_id is not None:
            _shift_positions(db, source_column_id, -1, old_position + 1)
        _shift_positions(db, destination_column_id, 1, position)
        task.column_id = destination_column_id

    task.position = position
    db.commit()
    db.refresh(task)
    return True


def delete_task(db: Session, task_id: uuid.UUID) -> bool:
    db_task = get_task(db, task_id)
    if db_task:
        db.delete(db_task)
        db.commit()
        return True
    return False


# Comments

def get_task_comments(db: Session, task_id: uuid.UUID) -> List[models.TaskComment]:
    return (
        db.query(models.TaskComment)
        .filter(models.TaskComment.task_id == task_id)
        .order_by(models.TaskComment.created_at.asc())
        .all()
    )


def create_task_comment(db: Session, task_id: uuid.UUID, user_id: uuid.UUID, content: str) -> models.TaskComment:
    db_comment = models.TaskComment(task_id=task_id, user_id=user_id, content=content)
    db.add(db_comment)
    db.commit()
    db.refresh(db_comment)
    return db_comment


# Board columns

DEFAULT_COLUMNS = (
    ("To Do", "#3B82F6"),
    ("In Progress", "#F59E0B"),
    ("Complete", "#10B981"),
)


def ensure_default_columns(db: Session) -> List[models.TaskColumn]:
    """Seed the shared board columns when none exist yet."""
    existing = db.query(models.TaskColumn).filter(models.TaskColumn.is_default.is_(True)).all()
    if existing:
        return existing
    columns = [
        models.TaskColumn(title=title, color=color, position=position, is_default=True)
        for position, (title, color) in enumerate(DEFAULT_COLUMNS)
    ]
    db.add_all(columns)
    db.commit()
    return columns


def _visible_columns(db: Session, user_id: uuid.UUID, project_id: Optional[uuid.UUID] = None):
    visible = [models.TaskColumn.user_id == user_id, models.TaskColumn.is_default.is_(True)]
    if project_id:
        visible.append(models.TaskColumn.project_id == project_id)
    return db.query(models.TaskColumn).filter(or_(*visible))


def get_columns(db: Session, user_id: uuid.UUID, project_id: Optional[uuid.UUID] = None) -> List[models.TaskColumn]:
    """Default columns, the user's personal columns and, with a project, that project's columns."""
    return (
        _visible_columns(db, user_id, project_id)
        .order_by(models.TaskColumn.position.asc(), models.TaskColumn.created_at.asc())
        .all()
    )


def get_column(db: Session, column_id: uuid.UUID) -> Optional[models.TaskColumn]:
    return db.query(models.TaskColumn).filter(models.TaskColumn.id == column_id).first()


def create_column(db: Session, column: schemas.TaskColumnCreate, created_by: uuid.UUID) -> models.TaskColumn:
    # Appended after every column the creator can currently see
    position = _visible_columns(db, created_by, column.project_id).count()
    db_column = models.TaskColumn(
        title=column.title,
        color=column.color,
        position=position,
        project_id=column.project_id,
        user_id=column.user_id,
        is_default=False,
    )
    db.add(db_column)
    db.commit()
    db.refresh(db_column)
    return db_column


def update_column(db: Session, db_column: models.TaskColumn, column: schemas.TaskColumnUpdate) -> models.TaskColumn:
    for key, value in column.model_dump(exclude_unset=True).items():
        setattr(db_column, key, value)
    db.commit()
    db.refresh(db_column)
    return db_column


def delete_column(db: Session, db_column: models.TaskColumn) -> None:
    # Tasks in the column fall back to no column
    db.query(models.Task).filter(models.Task.column_id == db_column.id).update(
        {models.Task.column_id: None}, synchronize_session=False
    )
    db.delete(db_column)
    db.commit()
