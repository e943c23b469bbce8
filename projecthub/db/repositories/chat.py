"""
Chat group and message repository functions.
"""
from __future__ import annotations

import uuid
from datetime import datetime, UTC
from typing import Optional, List, Dict, Tuple
from sqlalchemy import func, and_, or_
from sqlalchemy.orm import Session

from projecthub.db import models

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def get_group_for_project(db: Session, project_id: uuid.UUID) -> Optional[models.ChatGroup]:
    return db.query(models.ChatGroup).filter(models.ChatGroup.project_id == project_id).first()


def get_groups(db: Session, *, project_ids: Optional[List[uuid.UUID]] = None) -> List[Tuple[models.ChatGroup, int]]:
    """Return (group, member_count) rows ordered by name."""
    member_count = func.count(models.UserProjectAssignment.id)
    q = (
        db.query(models.ChatGroup, member_count)
        .outerjoin(
            models.UserProjectAssignment,
            models.UserProjectAssignment.project_id == models.ChatGroup.project_id,
        )
        .group_by(models.ChatGroup.id)
    )
    if project_ids is not None:
        q = q.filter(models.ChatGroup.project_id.in_(project_ids))
    return q.order_by(models.ChatGroup.name).all()


def create_message(db: Session, group_id: uuid.UUID, sender_id: uuid.UUID, content: str) -> models.Message:
    db_message = models.Message(group_id=group_id, sender_id=sender_id, content=content)
    db.add(db_message)
    db.commit()
    db.refresh(db_message)
    return db_message


def get_messages(db: Session, group_id: uuid.UUID, limit: Optional[int] = None) -> List[Tuple[models.Message, Optional[str]]]:
    q = (
        db.query(models.Message, models.User.name)
        .join(models.User, models.User.id == models.Message.sender_id)
        .filter(models.Message.group_id == group_id)
        .order_by(models.Message.created_at.asc())
    )
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def count_unread(
    db: Session,
    user_id: uuid.UUID,
    read_markers: Dict[uuid.UUID, Optional[datetime]],
) -> Dict[uuid.UUID, int]:
    """Count messages from other users newer than each project's read marker.

    ``read_markers`` maps project id to the last read timestamp (None means
    never read).
    """
    if not read_markers:
        return {}
    conditions = [
        and_(
            models.ChatGroup.project_id == project_id,
            models.Message.created_at > (marker or EPOCH),
        )
        for project_id, marker in read_markers.items()
    ]
    rows = (
        db.query(models.ChatGroup.project_id, func.count(models.Message.id))
        .join(models.Message, models.Message.group_id == models.ChatGroup.id)
        .filter(models.Message.sender_id != user_id)
        .filter(or_(*conditions))
        .group_by(models.ChatGroup.project_id)
        .all()
    )
    counts = {project_id: 0 for project_id in read_markers}
    for project_id, count in rows:
        counts[project_id] = count
    return counts
