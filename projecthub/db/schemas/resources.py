import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import validate_url


class LinkCreate(BaseModel):
    title: str = Field(min_length=1)
    url: str
    category: Optional[str] = None
    project_id: uuid.UUID

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        return validate_url(v)


class LinkUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    url: Optional[str] = None
    category: Optional[str] = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_url(v) if v is not None else v


class Link(BaseModel):
    id: uuid.UUID
    name: str
    url: str
    description: Optional[str] = None
    project_id: uuid.UUID
    client_id: Optional[uuid.UUID] = None
    added_by: Optional[uuid.UUID] = None
    uploader_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AssetCreate(BaseModel):
    name: str = Field(min_length=1)
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    project_id: uuid.UUID

    @field_validator("file_url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        return validate_url(v)


class AssetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    file_type: Optional[str] = None


class Asset(BaseModel):
    id: uuid.UUID
    name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    folder_type: Optional[str] = None
    project_id: uuid.UUID
    project_name: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    uploaded_by: uuid.UUID
    uploader_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
