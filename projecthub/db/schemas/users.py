import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from projecthub.utils.permissions import RoleEnum, DEFAULT_ROLE
from .common import normalize_email


class UserBase(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class UserCreate(UserBase):
    role: RoleEnum = RoleEnum(DEFAULT_ROLE)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        email = normalize_email(v)
        if not email:
            raise ValueError("Email is required")
        return email


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    # Checked by the route so unknown roles produce a 400 rather than a 422
    role: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v)


class User(UserBase):
    id: uuid.UUID
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: str
    model_config = ConfigDict(from_attributes=True)


class RoleCreate(BaseModel):
    name: RoleEnum


class RoleUpdate(BaseModel):
    name: RoleEnum


class Role(BaseModel):
    id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)
