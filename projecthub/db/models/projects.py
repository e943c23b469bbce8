import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc

PROJECT_STATUSES = ('active', 'completed', 'on-hold')


class Project(Base):
    __tablename__ = 'projects'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id', ondelete='CASCADE'), nullable=False)
    # Free-form effort strings ("40h", "2 weeks") as entered by admins
    total_time = Column(String, nullable=True)
    completed_time = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default='active')
    description = Column(Text, nullable=True)
    is_memo_required = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    client = relationship('Client')

    __table_args__ = (
        CheckConstraint("status IN ('active', 'completed', 'on-hold')", name='ck_projects_status'),
        Index('ix_projects_client_id', 'client_id'),
    )


class UserProjectAssignment(Base):
    __tablename__ = 'user_project_assignments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    assigned_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_activated_at = Column(DateTime(timezone=True), nullable=True)
    # Chat read marker for the project's group
    last_read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    user = relationship('User')
    project = relationship('Project')

    __table_args__ = (
        Index('ix_user_project_assignments_unique', 'user_id', 'project_id', unique=True),
        Index('ix_user_project_assignments_project_id', 'project_id'),
    )
