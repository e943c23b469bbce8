"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc`, and all ORM classes from a single import point.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import Role, User, ROLE_NAMES
from .clients import Client
from .projects import Project, UserProjectAssignment, PROJECT_STATUSES
from .tasks import TaskColumn, Task, UserTaskAssignment, TaskComment, TASK_STATUSES, TASK_PRIORITIES, DEFAULT_COLUMN_COLOR
from .reports import Memo, EodReport, MEMO_TYPES
from .resources import Link, Asset
from .chat import ChatGroup, Message
from .notifications import (
    NotificationPreference,
    NotificationRecipient,
    Notification,
    EmailNotificationLog,
    PushSubscription,
)
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users/roles
    "Role",
    "User",
    "ROLE_NAMES",
    # clients/projects
    "Client",
    "Project",
    "UserProjectAssignment",
    "PROJECT_STATUSES",
    # tasks
    "TaskColumn",
    "DEFAULT_COLUMN_COLOR",
    "Task",
    "UserTaskAssignment",
    "TaskComment",
    "TASK_STATUSES",
    "TASK_PRIORITIES",
    # daily reports
    "Memo",
    "EodReport",
    "MEMO_TYPES",
    # links/assets
    "Link",
    "Asset",
    # chat
    "ChatGroup",
    "Message",
    # notifications
    "NotificationPreference",
    "NotificationRecipient",
    "Notification",
    "EmailNotificationLog",
    "PushSubscription",
    # audit
    "AuditLog",
]
