"""Business logic services package with public service helpers."""

from .email_service import EmailService, EmailServiceConfig, get_email_service
from .notification_service import (
    NotificationPayload,
    NotificationService,
    NotificationTarget,
    get_notification_service,
)
from .realtime import ConnectionManager, get_connection_manager
from .storage import (
    GoogleDriveStorage,
    LocalStorage,
    StorageBackend,
    StorageError,
    get_storage_backend,
)

__all__ = [
    "EmailService",
    "EmailServiceConfig",
    "get_email_service",
    "NotificationPayload",
    "NotificationService",
    "NotificationTarget",
    "get_notification_service",
    "ConnectionManager",
    "get_connection_manager",
    "GoogleDriveStorage",
    "LocalStorage",
    "StorageBackend",
    "StorageError",
    "get_storage_backend",
]
