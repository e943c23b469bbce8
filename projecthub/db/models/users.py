import uuid
from sqlalchemy import Column, String, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc

ROLE_NAMES = ('admin', 'developer', 'tester', 'designer')


class Role(Base):
    __tablename__ = 'roles'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "name IN ('admin', 'developer', 'tester', 'designer')",
            name='ck_roles_name',
        ),
    )


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    image = Column(String, nullable=True)
    # 'admin'|'developer'|'tester'|'designer'
    role = Column(String(50), nullable=False, default='developer')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'
