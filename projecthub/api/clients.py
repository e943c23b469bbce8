"""
Client API endpoints.

Clients own projects; deleting a client removes its projects (and, through
them, everything attached to those projects).
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_permission
from projecthub.db import schemas
from projecthub.db.repositories import clients as client_repo
from projecthub.audit import AuditAction, log_client
from projecthub.utils.permissions import CAN_MANAGE_CLIENTS, CAN_VIEW_CLIENTS

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("", response_model=List[schemas.ClientWithStats])
def list_clients(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """List clients alphabetically with the number of projects each owns."""
    _user, current_user = user_context
    require_permission(current_user, CAN_VIEW_CLIENTS)
    rows = client_repo.get_clients_with_project_counts(db, skip=skip, limit=limit)
    return [
        schemas.ClientWithStats.model_validate(client).model_copy(update={"project_count": count})
        for client, count in rows
    ]


@router.post("", response_model=schemas.Client, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: schemas.ClientCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Create a client.

    - **name**: required
    - **email**: optional contact address, validated
    - **description**: optional notes
    """
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_CLIENTS)
    client = client_repo.create_client(db, payload)
    log_client(db, actor_user_id=user.id, client_id=client.id, action=AuditAction.CLIENT_CREATE, name=client.name)
    return client


@router.get("/{client_id}", response_model=schemas.Client)
def get_client(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    _user, current_user = user_context
    require_permission(current_user, CAN_VIEW_CLIENTS)
    client = client_repo.get_client(db, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.put("/{client_id}", response_model=schemas.Client)
def update_client(
    client_id: uuid.UUID,
    payload: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_CLIENTS)
    if payload.name is not None and not payload.name.strip():
        raise HTTPException(status_code=422, detail="Client name is required")
    client = client_repo.update_client(db, client_id, payload)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    log_client(db, actor_user_id=user.id, client_id=client.id, action=AuditAction.CLIENT_UPDATE, name=client.name)
    return client


@router.delete("/{client_id}")
def delete_client(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    require_permission(current_user, CAN_MANAGE_CLIENTS)
    client = client_repo.get_client(db, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    name = client.name
    client_repo.delete_client(db, client_id)
    log_client(db, actor_user_id=user.id, client_id=client_id, action=AuditAction.CLIENT_DELETE, name=name)
    return {"success": True}
