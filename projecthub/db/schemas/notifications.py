import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class NotificationBase(BaseModel):
    user_id: uuid.UUID
    event_type: str
    title: str
    message: str
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("metadata_json", "metadata")
    )


class NotificationCreate(NotificationBase):
    expires_days: Optional[int] = 30


class Notification(NotificationBase):
    id: uuid.UUID
    is_read: bool
    read_at: Optional[datetime]
    created_at: datetime
    expires_at: Optional[datetime]
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int
    total_count: int


class MarkReadRequest(BaseModel):
    notification_id: Optional[uuid.UUID] = None
    mark_all: Optional[bool] = None


class NotificationPreferencesUpdate(BaseModel):
    email_enabled: Optional[bool] = None
    slack_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    eod_notifications: Optional[bool] = None
    memo_notifications: Optional[bool] = None
    project_notifications: Optional[bool] = None


class NotificationPreferences(BaseModel):
    email_enabled: bool = True
    slack_enabled: bool = True
    push_enabled: bool = True
    eod_notifications: bool = True
    memo_notifications: bool = True
    project_notifications: bool = True
    model_config = ConfigDict(from_attributes=True)


class NotificationRecipientCreate(BaseModel):
    # Validated by the route so the error matches the recipients UI copy
    email: str
    label: Optional[str] = None


class NotificationRecipientUpdate(BaseModel):
    label: Optional[str] = None
    eod_enabled: Optional[bool] = None
    memo_enabled: Optional[bool] = None
    project_enabled: Optional[bool] = None

    @field_validator("label")
    @classmethod
    def _strip_label(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class NotificationRecipient(BaseModel):
    id: uuid.UUID
    email: str
    label: str
    eod_enabled: bool
    memo_enabled: bool
    project_enabled: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class EmailNotificationLog(BaseModel):
    id: uuid.UUID
    notification_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    email_address: str
    event_type: str
    subject: str
    status: str
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PushSubscriptionKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class PushSubscriptionInfo(BaseModel):
    endpoint: Optional[str] = None
    keys: Optional[PushSubscriptionKeys] = None


class PushSubscribeRequest(BaseModel):
    """Body of a browser ``PushSubscription.toJSON()`` wrapped under ``subscription``."""
    subscription: Optional[PushSubscriptionInfo] = None


class PushUnsubscribeRequest(BaseModel):
    endpoint: Optional[str] = None


class PushSubscriptionSummary(BaseModel):
    id: uuid.UUID
    endpoint: str
    created_at: datetime


class PushSubscriptionStatus(BaseModel):
    user_id: uuid.UUID
    subscription_count: int
    subscriptions: List[PushSubscriptionSummary]
    vapid_configured: bool
