import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class MessageCreate(BaseModel):
    # Both optional so a missing field yields the 400 below rather than a 422
    project_id: Optional[uuid.UUID] = None
    content: Optional[str] = None


class Message(BaseModel):
    id: uuid.UUID
    group_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    sender_id: uuid.UUID
    sender_name: Optional[str] = None
    content: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ChatGroup(BaseModel):
    id: uuid.UUID
    name: str
    project_id: uuid.UUID
    developer_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    success: bool
    action: str
