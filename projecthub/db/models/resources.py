import uuid
from sqlalchemy import Column, String, Text, DateTime, BigInteger, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Link(Base):
    __tablename__ = 'links'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    url = Column(String(2048), nullable=False)
    description = Column(Text, nullable=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id', ondelete='SET NULL'), nullable=True)
    added_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    uploader = relationship('User')
    project = relationship('Project')

    __table_args__ = (
        Index('ix_links_project_id_updated_at', 'project_id', 'updated_at'),
    )


class Asset(Base):
    __tablename__ = 'assets'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    file_url = Column(String(2048), nullable=False)
    file_type = Column(String(255), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    # 'client'|'internal' for uploaded files, NULL for registered links
    folder_type = Column(String(20), nullable=True)
    # Backend-specific object key (local relative path or Drive file id)
    storage_key = Column(String(1024), nullable=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id', ondelete='SET NULL'), nullable=True)
    uploaded_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    uploader = relationship('User')
    project = relationship('Project')

    __table_args__ = (
        Index('ix_assets_project_id_created_at', 'project_id', 'created_at'),
    )
