"""
Task API endpoints.

Tasks belong to a project, may nest one level via ``parent_task_id`` and are
addressable by a short human id (``PH-XXXXXX``) as well as their UUID.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_permission, ensure_project_access
from projecthub.db import models, schemas
from projecthub.db.repositories import projects as project_repo
from projecthub.db.repositories import tasks as task_repo
from projecthub.db.repositories import users as user_repo
from projecthub.utils.permissions import CAN_MANAGE_TASKS
from projecthub.utils.short_id import is_valid_short_id

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _to_schema(task: models.Task) -> schemas.Task:
    assignees = [
        schemas.TaskAssignee(id=a.user.id, name=a.user.name, email=a.user.email)
        for a in task.assignments
        if a.user is not None
    ]
    return schemas.Task.model_validate(task).model_copy(update={"assignees": assignees})


def _to_detail(db: Session, task: models.Task) -> schemas.TaskDetail:
    return schemas.TaskDetail(
        **_to_schema(task).model_dump(),
        project_name=task.project.name if task.project else None,
        subtasks=[_to_schema(t) for t in task_repo.get_subtasks(db, task.id)],
    )


def _get_task_or_404(db: Session, task_id: uuid.UUID, detail: str = "Task not found") -> models.Task:
    task = task_repo.get_task(db, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=detail)
    return task


def _check_column(db: Session, column_id: Optional[uuid.UUID], project_id: uuid.UUID, current_user) -> None:
    """The column must exist and be one the task's project board shows."""
    if column_id is None:
        return
    column = task_repo.get_column(db, column_id)
    if column is None:
        raise HTTPException(status_code=404, detail="Column not found")
    if column.is_default or column.project_id == project_id or column.user_id == current_user["id"]:
        return
    raise HTTPException(status_code=400, detail="Column is not available for this task")


def _check_assignees(db: Session, user_ids: Optional[List[uuid.UUID]]) -> None:
    if not user_ids:
        return
    unique_ids = set(user_ids)
    if len(user_repo.get_users_by_ids(db, list(unique_ids))) != len(unique_ids):
        raise HTTPException(status_code=404, detail="User not found")


@router.get("", response_model=List[schemas.Task])
def list_tasks(
    project_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List tasks, newest first.

    - **project_id**: tasks of one project
    - **status**: todo, in_progress or done
    """
    user, current_user = user_context
    project_ids = None
    if project_id is not None:
        ensure_project_access(db, project_id, current_user)
    elif not current_user["is_admin"]:
        project_ids = [p.id for _, p in project_repo.get_user_assignments(db, user.id)]
    tasks = task_repo.get_tasks(db, project_id=project_id, status=status, project_ids=project_ids, skip=skip, limit=limit)
    return [_to_schema(t) for t in tasks]


@router.post("", response_model=schemas.Task, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: schemas.TaskCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Create a task with a freshly allocated short id.

    - **parent_task_id**: makes this a subtask; the parent must be in the same project
    - **assigned_user_ids**: initial assignees
    """
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_TASKS)
    if project_repo.get_project(db, payload.project_id) is None:
        raise HTTPException(status_code=404, detail="Project not found")
    ensure_project_access(db, payload.project_id, current_user)
    if payload.parent_task_id is not None:
        parent = _get_task_or_404(db, payload.parent_task_id, detail="Parent task not found")
        if parent.project_id != payload.project_id:
            raise HTTPException(status_code=400, detail="Parent task must belong to the same project")
    _check_column(db, payload.column_id, payload.project_id, current_user)
    _check_assignees(db, payload.assigned_user_ids)
    task = task_repo.create_task(db, payload, created_by=user.id)
    return _to_schema(task)


@router.post("/reorder", response_model=schemas.TaskReorderResponse)
def reorder_task(
    payload: schemas.TaskReorder,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Move a task on the board.

    Tasks after the old slot move up; tasks at or after the new slot move down.
    """
    _user, current_user = user_context
    task = _get_task_or_404(db, payload.task_id)
    ensure_project_access(db, task.project_id, current_user)
    _check_column(db, payload.destination_column_id, task.project_id, current_user)
    if not task_repo.reorder_task(db, task, payload.destination_column_id, payload.position):
        return schemas.TaskReorderResponse(success=True, message="No change needed")
    return schemas.TaskReorderResponse(success=True, message="Task reordered successfully")


@router.get("/lookup/{short_id}", response_model=schemas.TaskDetail)
def lookup_task(
    short_id: str,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Find a task by its short id (case-insensitive), including subtasks."""
    _user, current_user = user_context
    if not is_valid_short_id(short_id):
        raise HTTPException(status_code=400, detail="Invalid task id")
    task = task_repo.get_task_by_short_id(db, short_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    ensure_project_access(db, task.project_id, current_user)
    return _to_detail(db, task)


@router.get("/{task_id}", response_model=schemas.TaskDetail)
def get_task(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    task = _get_task_or_404(db, task_id)
    ensure_project_access(db, task.project_id, current_user)
    return _to_detail(db, task)


@router.patch("/{task_id}", response_model=schemas.Task)
def update_task(
    task_id: uuid.UUID,
    payload: schemas.TaskUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Update task fields; **assigned_user_ids** replaces the assignee list when given."""
    _user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_TASKS)
    task = _get_task_or_404(db, task_id)
    ensure_project_access(db, task.project_id, current_user)
    _check_assignees(db, payload.assigned_user_ids)
    if "column_id" in payload.model_fields_set:
        _check_column(db, payload.column_id, task.project_id, current_user)
    task = task_repo.update_task(db, task_id, payload)
    return _to_schema(task)


@router.delete("/{task_id}", response_model=schemas.TaskDeleteResponse)
def delete_task(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_TASKS)
    task = _get_task_or_404(db, task_id)
    ensure_project_access(db, task.project_id, current_user)
    task_repo.delete_task(db, task_id)
    return schemas.TaskDeleteResponse(success=True, message="Task deleted successfully")


@router.get("/{task_id}/subtasks", response_model=List[schemas.Task])
def list_subtasks(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    parent = _get_task_or_404(db, task_id, detail="Parent task not found")
    ensure_project_access(db, parent.project_id, current_user)
    return [_to_schema(t) for t in task_repo.get_subtasks(db, task_id)]


# Comments

@router.get("/{task_id}/comments", response_model=List[schemas.TaskComment])
def list_comments(
    task_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    task = _get_task_or_404(db, task_id)
    ensure_project_access(db, task.project_id, current_user)
    return [
        schemas.TaskComment.model_validate(c).model_copy(update={"user_name": c.user.name if c.user else None})
        for c in task_repo.get_task_comments(db, task_id)
    ]


@router.post("/{task_id}/comments", response_model=schemas.TaskComment, status_code=status.HTTP_201_CREATED)
def create_comment(
    task_id: uuid.UUID,
    payload: schemas.TaskCommentCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    task = _get_task_or_404(db, task_id)
    ensure_project_access(db, task.project_id, current_user)
    comment = task_repo.create_task_comment(db, task_id, user.id, payload.content)
    return schemas.TaskComment.model_validate(comment).model_copy(update={"user_name": user.name})
