"""
Notification API Endpoints

In-app notifications, per-user channel preferences and the admin-managed
list of external email recipients.
"""

from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from projecthub.db.database import get_db
from projecthub.db import schemas
from projecthub.db.repositories import notifications as notification_repo
from projecthub.db.schemas.common import is_valid_email
from projecthub.api.deps import get_current_user_context
from projecthub.api.permissions import require_admin
from projecthub.services.notification_service import NotificationService


router = APIRouter(prefix="/api/notifications", tags=["notifications"])

# Fields any user may change on their own preferences
SELF_SERVICE_PREFERENCES = {"push_enabled"}


@router.get("", response_model=schemas.NotificationListResponse)
def get_notifications(
    unread_only: bool = False,
    limit: int = 20,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Get notifications for the current user.

    - **unread_only**: If true, only return unread notifications
    - **limit**: Maximum number of notifications to return (default 20)
    """
    user, current_user = user_context

    service = NotificationService(db)
    notifications = service.get_user_notifications(
        user_id=user.id,
        unread_only=unread_only,
        limit=limit
    )

    return schemas.NotificationListResponse(
        notifications=notifications,
        unread_count=service.get_unread_count(user.id),
        total_count=service.get_total_count(user.id),
    )


@router.get("/unread-count")
def get_unread_count(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    return {"count": NotificationService(db).get_unread_count(user.id)}


@router.post("/read")
def mark_read(
    payload: schemas.MarkReadRequest,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Mark one notification, or all of them, as read.

    - **notification_id**: the notification to mark
    - **mark_all**: mark every unread notification
    """
    user, current_user = user_context
    service = NotificationService(db)

    if payload.mark_all:
        return {"success": True, "updated": service.mark_all_read(user.id)}
    if payload.notification_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")

    notification = service.mark_notification_read(payload.notification_id, user.id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return {"success": True, "updated": 1}


@router.get("/preferences", response_model=schemas.NotificationPreferences)
def get_preferences(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    return schemas.NotificationPreferences(**NotificationService(db).get_user_preferences(user.id))


@router.patch("/preferences", response_model=schemas.NotificationPreferences)
def update_preferences(
    payload: schemas.NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Update the caller's notification preferences.

    Non-admins may only toggle **push_enabled**.
    """
    user, current_user = user_context
    update_data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if not current_user["is_admin"] and set(update_data) - SELF_SERVICE_PREFERENCES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can change these notification settings",
        )
    prefs = NotificationService(db).update_user_preferences(user.id, update_data)
    return schemas.NotificationPreferences(**prefs)


@router.post("/test")
def send_test_notification(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """Send a test notification to the caller on every enabled channel."""
    user, current_user = user_context
    result = NotificationService(db).send_test_notification(user)
    return {
        "success": True,
        "notification_ids": [str(n.id) for n in result["notifications"]],
        "emails": len(result["emails"]),
        "slack": result["slack"],
        "push": result["push"],
    }


# Web Push subscriptions

@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe_push(
    payload: schemas.PushSubscribeRequest,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Register the caller's browser for push notifications.

    - **subscription**: the browser's PushSubscription (endpoint and keys)
    """
    user, current_user = user_context
    subscription = payload.subscription
    keys = subscription.keys if subscription else None
    if not subscription or not subscription.endpoint or not keys or not keys.p256dh or not keys.auth:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid subscription object")
    _record, created = notification_repo.upsert_push_subscription(
        db,
        user_id=user.id,
        endpoint=subscription.endpoint,
        p256dh=keys.p256dh,
        auth=keys.auth,
    )
    return {"success": True, "created": created}


@router.delete("/subscribe")
def unsubscribe_push(
    payload: schemas.PushUnsubscribeRequest,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    if not payload.endpoint:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing endpoint")
    removed = notification_repo.delete_push_subscription_by_endpoint(db, payload.endpoint)
    return {"success": True, "removed": removed}


@router.get("/subscription-status", response_model=schemas.PushSubscriptionStatus)
def get_subscription_status(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """The caller's registered push endpoints (truncated) and whether VAPID keys are set."""
    user, current_user = user_context
    subscriptions = notification_repo.get_push_subscriptions(db, [user.id])
    return schemas.PushSubscriptionStatus(
        user_id=user.id,
        subscription_count=len(subscriptions),
        subscriptions=[
            schemas.PushSubscriptionSummary(
                id=s.id,
                endpoint=f"{s.endpoint[:50]}...",
                created_at=s.created_at,
            )
            for s in subscriptions
        ],
        vapid_configured=NotificationService(db).push_configured,
    )


# External recipients (admin only)

@router.get("/recipients", response_model=List[schemas.NotificationRecipient])
def list_recipients(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    require_admin(current_user)
    return notification_repo.get_recipients(db)


@router.post("/recipients", response_model=schemas.NotificationRecipient, status_code=status.HTTP_201_CREATED)
def create_recipient(
    payload: schemas.NotificationRecipientCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Add an external address to the notification list.

    - **email**: recipient address
    - **label**: display label (default "External")
    """
    user, current_user = user_context
    require_admin(current_user)
    email = (payload.email or "").strip().lower()
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email address")
    if notification_repo.get_recipient_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists in the list")
    label = payload.label.strip() if payload.label and payload.label.strip() else None
    return notification_repo.create_recipient(db, email=email, label=label, created_by=user.id)


@router.patch("/recipients/{recipient_id}", response_model=schemas.NotificationRecipient)
def update_recipient(
    recipient_id: uuid.UUID,
    payload: schemas.NotificationRecipientUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    require_admin(current_user)
    recipient = notification_repo.get_recipient(db, recipient_id)
    if recipient is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    update_data = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "label" in update_data and not update_data["label"]:
        update_data.pop("label")
    return notification_repo.update_recipient(db, recipient, update_data)


@router.delete("/recipients/{recipient_id}")
def delete_recipient(
    recipient_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    require_admin(current_user)
    if not notification_repo.delete_recipient(db, recipient_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    return {"success": True}
