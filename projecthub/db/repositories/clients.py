"""
Client repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from projecthub.db import models, schemas


def create_client(db: Session, client: schemas.ClientCreate) -> models.Client:
    db_client = models.Client(**client.model_dump())
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    return db_client


def get_client(db: Session, client_id: uuid.UUID) -> Optional[models.Client]:
    return db.query(models.Client).filter(models.Client.id == client_id).first()


def get_clients_with_project_counts(db: Session, skip: int = 0, limit: int = 100) -> List[Tuple[models.Client, int]]:
    project_count = func.count(models.Project.id)
    return (
        db.query(models.Client, project_count)
        .outerjoin(models.Project, models.Project.client_id == models.Client.id)
        .group_by(models.Client.id)
        .order_by(models.Client.name)
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_client(db: Session, client_id: uuid.UUID, client: schemas.ClientUpdate) -> Optional[models.Client]:
    db_client = get_client(db, client_id)
    if db_client:
        update_data = client.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_client, key, value)
        db.commit()
        db.refresh(db_client)
    return db_client


def delete_client(db: Session, client_id: uuid.UUID) -> bool:
    db_client = get_client(db, client_id)
    if db_client:
        db.delete(db_client)
        db.commit()
        return True
    return False
