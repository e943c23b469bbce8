import uuid
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, field_validator

from .common import reject_null


class ProjectStatus(str, Enum):
    active = "active"
    completed = "completed"
    on_hold = "on-hold"


class ProjectBase(BaseModel):
    name: str
    client_id: uuid.UUID
    status: ProjectStatus = ProjectStatus.active
    description: Optional[str] = None
    total_time: Optional[str] = None
    completed_time: Optional[str] = None
    is_memo_required: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Project name is required")
        return v.strip()


class ProjectCreate(ProjectBase):
    assigned_user_ids: List[uuid.UUID] = []


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    status: Optional[ProjectStatus] = None
    description: Optional[str] = None
    total_time: Optional[str] = None
    completed_time: Optional[str] = None
    is_memo_required: Optional[bool] = None

    _not_null = field_validator("name", "client_id", "status", "is_memo_required")(reject_null)


class Project(ProjectBase):
    id: uuid.UUID
    status: str
    client_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ProjectMember(BaseModel):
    user_id: uuid.UUID
    name: Optional[str] = None
    email: str
    role: str
    is_active: bool
    assigned_at: datetime
    last_activated_at: Optional[datetime] = None


class ProjectDetail(Project):
    members: List[ProjectMember] = []


class MemberAdd(BaseModel):
    user_id: uuid.UUID


class AssignmentStatus(BaseModel):
    assigned_at: datetime
    is_active: bool


class ToggleActiveRequest(BaseModel):
    is_active: bool
    user_id: Optional[uuid.UUID] = None


class ToggleActiveResponse(BaseModel):
    success: bool
    is_active: bool
