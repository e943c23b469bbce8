import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc

MEMO_TYPES = ('universal', 'short')


class Memo(Base):
    __tablename__ = 'memos'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    report_date = Column(Date, nullable=False)
    memo_type = Column(String(20), nullable=False, default='short')
    memo_content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    user = relationship('User')
    project = relationship('Project')

    __table_args__ = (
        CheckConstraint("memo_type IN ('universal', 'short')", name='ck_memos_memo_type'),
        Index('ix_memos_unique_per_day', 'user_id', 'project_id', 'report_date', 'memo_type', unique=True),
        Index('ix_memos_report_date', 'report_date'),
    )


class EodReport(Base):
    __tablename__ = 'eod_reports'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    report_date = Column(Date, nullable=False)
    client_update = Column(Text, nullable=True)
    actual_update = Column(Text, nullable=False)
    hours_spent = Column(Numeric(5, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    user = relationship('User')
    project = relationship('Project')

    __table_args__ = (
        Index('ix_eod_reports_unique_per_day', 'user_id', 'project_id', 'report_date', unique=True),
        Index('ix_eod_reports_report_date', 'report_date'),
    )
