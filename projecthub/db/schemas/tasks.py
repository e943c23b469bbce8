import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import reject_null


class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    done = "done"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class TaskBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    type: Optional[str] = None
    deadline: Optional[datetime] = None
    estimated_time: Optional[str] = None
    completed_time: Optional[str] = None


class TaskCreate(TaskBase):
    project_id: uuid.UUID
    parent_task_id: Optional[uuid.UUID] = None
    column_id: Optional[uuid.UUID] = None
    assigned_user_ids: List[uuid.UUID] = []


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    type: Optional[str] = None
    deadline: Optional[datetime] = None
    estimated_time: Optional[str] = None
    completed_time: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)
    column_id: Optional[uuid.UUID] = None
    assigned_user_ids: Optional[List[uuid.UUID]] = None

    _not_null = field_validator("name", "status", "priority", "position")(reject_null)


class TaskAssignee(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: str


class Task(TaskBase):
    id: uuid.UUID
    short_id: str
    status: str
    priority: str
    project_id: uuid.UUID
    parent_task_id: Optional[uuid.UUID] = None
    position: int = 0
    column_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    assignees: List[TaskAssignee] = []
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TaskDetail(Task):
    project_name: Optional[str] = None
    subtasks: List[Task] = []


class TaskDeleteResponse(BaseModel):
    success: bool
    message: str


class TaskCommentCreate(BaseModel):
    content: str = Field(min_length=1)


class TaskComment(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    user_id: uuid.UUID
    user_name: Optional[str] = None
    content: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TaskReorder(BaseModel):
    """Move a task to ``position`` inside ``destination_column_id``."""
    task_id: uuid.UUID
    destination_column_id: uuid.UUID
    position: int = Field(ge=0)


class TaskReorderResponse(BaseModel):
    success: bool
    message: str


# Board columns

class TaskColumnCreate(BaseModel):
    title: str = Field(min_length=1)
    color: str = "#6B7280"
    project_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title required")
        return v.strip()


class TaskColumnUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)

    _not_null = field_validator("title", "color", "position")(reject_null)


class TaskColumn(BaseModel):
    id: uuid.UUID
    title: str
    color: str
    position: int
    project_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    is_default: bool
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
