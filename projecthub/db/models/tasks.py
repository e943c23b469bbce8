import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc

TASK_STATUSES = ('todo', 'in_progress', 'done')
TASK_PRIORITIES = ('low', 'medium', 'high')
DEFAULT_COLUMN_COLOR = "#6B7280"


class TaskColumn(Base):
    """A board column; default columns are shared, others belong to a project or a user."""
    __tablename__ = 'task_columns'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    color = Column(String(20), nullable=False, default=DEFAULT_COLUMN_COLOR)
    position = Column(Integer, nullable=False, default=0)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('ix_task_columns_project_id', 'project_id'),
        Index('ix_task_columns_user_id', 'user_id'),
    )


class Task(Base):
    __tablename__ = 'tasks'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    short_id = Column(String(9), nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='todo')
    priority = Column(String(10), nullable=False, default='medium')
    type = Column(String(50), nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)
    estimated_time = Column(String, nullable=True)
    completed_time = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    column_id = Column(UUID(as_uuid=True), ForeignKey('task_columns.id', ondelete='SET NULL'), nullable=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    parent_task_id = Column(UUID(as_uuid=True), ForeignKey('tasks.id', ondelete='CASCADE'), nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    project = relationship('Project')
    assignments = relationship(
        'UserTaskAssignment',
        back_populates='task',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )
    subtasks = relationship(
        'Task',
        order_by='Task.position',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("status IN ('todo', 'in_progress', 'done')", name='ck_tasks_status'),
        CheckConstraint("priority IN ('low', 'medium', 'high')", name='ck_tasks_priority'),
        Index('ix_tasks_project_id_created_at', 'project_id', 'created_at'),
        Index('ix_tasks_parent_task_id', 'parent_task_id'),
        Index('ix_tasks_column_id_position', 'column_id', 'position'),
    )


class UserTaskAssignment(Base):
    __tablename__ = 'user_task_assignments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    task_id = Column(UUID(as_uuid=True), ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    assigned_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    task = relationship('Task', back_populates='assignments')
    user = relationship('User')

    __table_args__ = (
        Index('ix_user_task_assignments_unique', 'user_id', 'task_id', unique=True),
    )


class TaskComment(Base):
    __tablename__ = 'task_comments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    task_id = Column(UUID(as_uuid=True), ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    user = relationship('User')

    __table_args__ = (
        Index('ix_task_comments_task_id_created_at', 'task_id', 'created_at'),
    )
