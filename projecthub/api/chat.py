"""
Project chat endpoints.

Each project has exactly one chat group. New messages are pushed over the
real-time layer to the group's room and to the personal rooms of the other
project members, so unread badges update without joining the group.
"""
from typing import Dict, List
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import can_access_project, require_permission
from projecthub.db import schemas
from projecthub.db.repositories import chat as chat_repo
from projecthub.db.repositories import projects as project_repo
from projecthub.services.realtime import EVENT_MESSAGE, group_room, manager, user_room
from projecthub.utils.permissions import CAN_CHAT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("/messages", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Post a message to a project's chat group.

    - **project_id**: project whose group receives the message
    - **content**: message text
    """
    user, current_user = user_context
    require_permission(current_user, CAN_CHAT)
    content = (payload.content or "").strip()
    if payload.project_id is None or not content:
        raise HTTPException(status_code=400, detail="Missing required fields")
    group = chat_repo.get_group_for_project(db, payload.project_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Chat group not found for this project")
    if not can_access_project(db, payload.project_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")

    message = chat_repo.create_message(db, group.id, user.id, content)
    body = schemas.Message.model_validate(message).model_copy(
        update={"sender_name": user.name, "project_id": payload.project_id}
    )

    event = body.model_dump()
    manager.emit(group_room(payload.project_id), EVENT_MESSAGE, event)
    for member_id in project_repo.get_project_member_ids(db, payload.project_id):
        if member_id != user.id:
            manager.emit(user_room(member_id), EVENT_MESSAGE, event)
    return body


@router.get("/groups", response_model=List[schemas.ChatGroup])
def list_groups(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Chat groups visible to the caller with their member counts."""
    user, current_user = user_context
    project_ids = None
    if not current_user["is_admin"]:
        project_ids = [p.id for _, p in project_repo.get_user_assignments(db, user.id)]
    return [
        schemas.ChatGroup.model_validate(group).model_copy(update={"developer_count": count})
        for group, count in chat_repo.get_groups(db, project_ids=project_ids)
    ]


@router.get("/unread-counts", response_model=Dict[str, int])
def unread_counts(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Messages from others after the caller's read marker, keyed by project id."""
    user, current_user = user_context
    markers = {p.id: a.last_read_at for a, p in project_repo.get_user_assignments(db, user.id)}
    if current_user["is_admin"]:
        for group, _count in chat_repo.get_groups(db):
            markers.setdefault(group.project_id, None)
    counts = chat_repo.count_unread(db, user.id, markers)
    return {str(project_id): count for project_id, count in counts.items()}


@router.get("/{project_id}", response_model=List[schemas.Message])
def list_messages(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    group = chat_repo.get_group_for_project(db, project_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    if not can_access_project(db, project_id, current_user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return [
        schemas.Message.model_validate(message).model_copy(
            update={"sender_name": sender_name, "project_id": project_id}
        )
        for message, sender_name in chat_repo.get_messages(db, group.id)
    ]


@router.post("/{project_id}/read", response_model=schemas.MarkReadResponse)
def mark_read(
    project_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Move the caller's read marker for a project to now.

    Admins without an assignment get one created so the marker has a home.
    """
    user, current_user = user_context
    assignment = project_repo.get_assignment(db, project_id, user.id)
    if assignment is not None:
        project_repo.touch_last_read(db, assignment)
        return schemas.MarkReadResponse(success=True, action="updated")
    if current_user["is_admin"]:
        if project_repo.get_project(db, project_id) is None:
            raise HTTPException(status_code=404, detail="Project not found")
        assignment, _created = project_repo.assign_user(db, project_id, user.id)
        project_repo.touch_last_read(db, assignment)
        return schemas.MarkReadResponse(success=True, action="created")
    return schemas.MarkReadResponse(success=True, action="none")
