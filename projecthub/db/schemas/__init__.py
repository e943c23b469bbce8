"""
Domain-split Pydantic schemas re-exported from a single import point.
"""

from .users import (
    UserBase,
    UserCreate,
    UserUpdate,
    User,
    UserSummary,
    RoleCreate,
    RoleUpdate,
    Role,
)
from .clients import ClientBase, ClientCreate, ClientUpdate, Client, ClientWithStats
from .projects import (
    ProjectStatus,
    ProjectBase,
    ProjectCreate,
    ProjectUpdate,
    Project,
    ProjectMember,
    ProjectDetail,
    MemberAdd,
    AssignmentStatus,
    ToggleActiveRequest,
    ToggleActiveResponse,
)
from .tasks import (
    TaskStatus,
    TaskPriority,
    TaskBase,
    TaskCreate,
    TaskUpdate,
    TaskAssignee,
    Task,
    TaskDetail,
    TaskDeleteResponse,
    TaskCommentCreate,
    TaskComment,
    TaskReorder,
    TaskReorderResponse,
    TaskColumnCreate,
    TaskColumnUpdate,
    TaskColumn,
)
from .reports import (
    MEMO_MAX_LENGTH,
    MemoType,
    MemoCreate,
    MemoUpdate,
    Memo,
    EodCreate,
    EodUpdate,
    Eod,
    WeeklyEodMeta,
    WeeklyEodResponse,
    DeleteResponse,
)
from .resources import LinkCreate, LinkUpdate, Link, AssetCreate, AssetUpdate, Asset
from .chat import MessageCreate, Message, ChatGroup, MarkReadResponse
from .notifications import (
    NotificationBase,
    NotificationCreate,
    Notification,
    NotificationListResponse,
    MarkReadRequest,
    NotificationPreferencesUpdate,
    NotificationPreferences,
    NotificationRecipientCreate,
    NotificationRecipientUpdate,
    NotificationRecipient,
    EmailNotificationLog,
    PushSubscriptionKeys,
    PushSubscriptionInfo,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    PushSubscriptionSummary,
    PushSubscriptionStatus,
)
from .reporting import (
    MissingUpdate,
    ProjectTodayStatus,
    HistoryDay,
    HistoryStats,
    UpdatesHistory,
    CalendarDay,
    DayDetail,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog

__all__ = [
    # users/roles
    "UserBase", "UserCreate", "UserUpdate", "User", "UserSummary",
    "RoleCreate", "RoleUpdate", "Role",
    # clients
    "ClientBase", "ClientCreate", "ClientUpdate", "Client", "ClientWithStats",
    # projects
    "ProjectStatus", "ProjectBase", "ProjectCreate", "ProjectUpdate", "Project",
    "ProjectMember", "ProjectDetail", "MemberAdd", "AssignmentStatus",
    "ToggleActiveRequest", "ToggleActiveResponse",
    # tasks
    "TaskStatus", "TaskPriority", "TaskBase", "TaskCreate", "TaskUpdate", "TaskAssignee",
    "Task", "TaskDetail", "TaskDeleteResponse", "TaskCommentCreate", "TaskComment",
    "TaskReorder", "TaskReorderResponse", "TaskColumnCreate", "TaskColumnUpdate", "TaskColumn",
    # reports
    "MEMO_MAX_LENGTH", "MemoType", "MemoCreate", "MemoUpdate", "Memo",
    "EodCreate", "EodUpdate", "Eod", "WeeklyEodMeta", "WeeklyEodResponse", "DeleteResponse",
    # links/assets
    "LinkCreate", "LinkUpdate", "Link", "AssetCreate", "AssetUpdate", "Asset",
    # chat
    "MessageCreate", "Message", "ChatGroup", "MarkReadResponse",
    # notifications
    "NotificationBase", "NotificationCreate", "Notification", "NotificationListResponse",
    "MarkReadRequest", "NotificationPreferencesUpdate", "NotificationPreferences",
    "NotificationRecipientCreate", "NotificationRecipientUpdate", "NotificationRecipient",
    "EmailNotificationLog",
    "PushSubscriptionKeys", "PushSubscriptionInfo", "PushSubscribeRequest", "PushUnsubscribeRequest",
    "PushSubscriptionSummary", "PushSubscriptionStatus",
    # reporting
    "MissingUpdate", "ProjectTodayStatus", "HistoryDay", "HistoryStats", "UpdatesHistory",
    "CalendarDay", "DayDetail",
    # audit
    "AuditLogBase", "AuditLogCreate", "AuditLog",
]
