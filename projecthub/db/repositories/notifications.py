"""
Notification preference, managed recipient and push subscription repository functions.

In-app notification rows and email logs are handled by
``projecthub.services.notification_service``.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Dict, Tuple
from sqlalchemy.orm import Session

from projecthub.db import models

PREFERENCE_FIELDS = (
    "email_enabled",
    "slack_enabled",
    "push_enabled",
    "eod_notifications",
    "memo_notifications",
    "project_notifications",
)


def get_preferences(db: Session, user_id: uuid.UUID) -> Optional[models.NotificationPreference]:
    return (
        db.query(models.NotificationPreference)
        .filter(models.NotificationPreference.user_id == user_id)
        .first()
    )


def get_preferences_for_users(db: Session, user_ids: List[uuid.UUID]) -> Dict[uuid.UUID, models.NotificationPreference]:
    if not user_ids:
        return {}
    rows = (
        db.query(models.NotificationPreference)
        .filter(models.NotificationPreference.user_id.in_(user_ids))
        .all()
    )
    return {row.user_id: row for row in rows}


def upsert_preferences(db: Session, user_id: uuid.UUID, update_data: dict) -> models.NotificationPreference:
    prefs = get_preferences(db, user_id)
    if prefs is None:
        prefs = models.NotificationPreference(user_id=user_id)
        db.add(prefs)
    for key, value in update_data.items():
        if key in PREFERENCE_FIELDS and value is not None:
            setattr(prefs, key, value)
    db.commit()
    db.refresh(prefs)
    return prefs


# Managed recipients

def get_recipients(db: Session) -> List[models.NotificationRecipient]:
    return db.query(models.NotificationRecipient).order_by(models.NotificationRecipient.created_at.asc()).all()


def get_recipient(db: Session, recipient_id: uuid.UUID) -> Optional[models.NotificationRecipient]:
    return db.query(models.NotificationRecipient).filter(models.NotificationRecipient.id == recipient_id).first()


def get_recipient_by_email(db: Session, email: str) -> Optional[models.NotificationRecipient]:
    return db.query(models.NotificationRecipient).filter(models.NotificationRecipient.email == email).first()


def create_recipient(db: Session, *, email: str, label: Optional[str], created_by: Optional[uuid.UUID]) -> models.NotificationRecipient:
    db_recipient = models.NotificationRecipient(
        email=email,
        label=(label or "").strip() or "External",
        created_by=created_by,
    )
    db.add(db_recipient)
    db.commit()
    db.refresh(db_recipient)
    return db_recipient


def update_recipient(db: Session, db_recipient: models.NotificationRecipient, update_data: dict) -> models.NotificationRecipient:
    for key, value in update_data.items():
        if value is not None:
            setattr(db_recipient, key, value)
    db.commit()
    db.refresh(db_recipient)
    return db_recipient


def delete_recipient(db: Session, recipient_id: uuid.UUID) -> bool:
    db_recipient = get_recipient(db, recipient_id)
    if db_recipient:
        db.delete(db_recipient)
        db.commit()
        return True
    return False


# Push subscriptions

def get_push_subscriptions(db: Session, user_ids: List[uuid.UUID]) -> List[models.PushSubscription]:
    if not user_ids:
        return []
    return (
        db.query(models.PushSubscription)
        .filter(models.PushSubscription.user_id.in_(user_ids))
        .order_by(models.PushSubscription.created_at.asc())
        .all()
    )


def upsert_push_subscription(
    db: Session,
    *,
    user_id: uuid.UUID,
    endpoint: str,
    p256dh: str,
    auth: str,
) -> Tuple[models.PushSubscription, bool]:
    """Store a subscription keyed by endpoint; an existing endpoint moves to ``user_id``."""
    existing = db.query(models.PushSubscription).filter(models.PushSubscription.endpoint == endpoint).first()
    if existing:
        existing.user_id = user_id
        existing.p256dh = p256dh
        existing.auth = auth
        db.commit()
        db.refresh(existing)
        return existing, False
    db_subscription = models.PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
    db.add(db_subscription)
    db.commit()
    db.refresh(db_subscription)
    return db_subscription, True


def delete_push_subscription_by_endpoint(db: Session, endpoint: str) -> int:
    count = (
        db.query(models.PushSubscription)
        .filter(models.PushSubscription.endpoint == endpoint)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def delete_push_subscription(db: Session, subscription_id: uuid.UUID) -> None:
    db.query(models.PushSubscription).filter(models.PushSubscription.id == subscription_id).delete(
        synchronize_session=False
    )
    db.commit()
