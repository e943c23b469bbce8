"""
Role-based permission utilities for workspace users.

Each user carries a single global role. Permissions are named capabilities
mapped to the roles that hold them, so checks read as
``has_permission(role, CAN_MANAGE_TASKS)`` rather than ad-hoc role tests.
"""

from typing import Dict, List, Set, FrozenSet
from enum import Enum


# Central role constants to ensure consistency across the codebase
ROLE_ADMIN = "admin"
ROLE_DEVELOPER = "developer"
ROLE_TESTER = "tester"
ROLE_DESIGNER = "designer"

ALLOWED_ROLES: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_DEVELOPER, ROLE_TESTER, ROLE_DESIGNER})
DEFAULT_ROLE = ROLE_DEVELOPER

# Derived role groups
ALL_ROLES: FrozenSet[str] = ALLOWED_ROLES
ADMIN_ONLY: FrozenSet[str] = frozenset({ROLE_ADMIN})
CONTRIBUTOR_ROLES: FrozenSet[str] = frozenset({ROLE_DEVELOPER, ROLE_TESTER, ROLE_DESIGNER})


class RoleEnum(str, Enum):
    """Enum for user roles used in schemas and validation."""
    admin = ROLE_ADMIN
    developer = ROLE_DEVELOPER
    tester = ROLE_TESTER
    designer = ROLE_DESIGNER


CAN_MANAGE_CLIENTS = "CAN_MANAGE_CLIENTS"
CAN_MANAGE_PROJECTS = "CAN_MANAGE_PROJECTS"
CAN_MANAGE_USERS = "CAN_MANAGE_USERS"
CAN_VIEW_CLIENTS = "CAN_VIEW_CLIENTS"
CAN_VIEW_ALL_PROJECTS = "CAN_VIEW_ALL_PROJECTS"
CAN_ASSIGN_TASKS = "CAN_ASSIGN_TASKS"
CAN_DELETE_PROJECTS = "CAN_DELETE_PROJECTS"
CAN_VIEW_PROJECTS = "CAN_VIEW_PROJECTS"
CAN_VIEW_DEVELOPERS = "CAN_VIEW_DEVELOPERS"
CAN_MANAGE_EODS = "CAN_MANAGE_EODS"
CAN_MANAGE_MEMOS = "CAN_MANAGE_MEMOS"
CAN_MANAGE_ASSETS = "CAN_MANAGE_ASSETS"
CAN_UPLOAD_DESIGNS = "CAN_UPLOAD_DESIGNS"
CAN_VIEW_DESIGN_TASKS = "CAN_VIEW_DESIGN_TASKS"
CAN_MANAGE_LINKS = "CAN_MANAGE_LINKS"
CAN_CHAT = "CAN_CHAT"
CAN_MANAGE_TASKS = "CAN_MANAGE_TASKS"
CAN_MANAGE_BUGS = "CAN_MANAGE_BUGS"
CAN_VIEW_TEST_QUEUE = "CAN_VIEW_TEST_QUEUE"

PERMISSIONS: Dict[str, FrozenSet[str]] = {
    CAN_MANAGE_CLIENTS: ADMIN_ONLY,
    CAN_MANAGE_PROJECTS: ADMIN_ONLY,
    CAN_MANAGE_USERS: ADMIN_ONLY,
    CAN_VIEW_CLIENTS: ADMIN_ONLY,
    CAN_VIEW_ALL_PROJECTS: ADMIN_ONLY,
    CAN_ASSIGN_TASKS: ADMIN_ONLY,
    CAN_DELETE_PROJECTS: ADMIN_ONLY,
    CAN_VIEW_PROJECTS: ALL_ROLES,
    CAN_VIEW_DEVELOPERS: ALL_ROLES,
    CAN_MANAGE_EODS: CONTRIBUTOR_ROLES,
    CAN_MANAGE_MEMOS: CONTRIBUTOR_ROLES,
    CAN_MANAGE_ASSETS: frozenset({ROLE_ADMIN, ROLE_DESIGNER}),
    CAN_UPLOAD_DESIGNS: frozenset({ROLE_ADMIN, ROLE_DESIGNER}),
    CAN_VIEW_DESIGN_TASKS: frozenset({ROLE_ADMIN, ROLE_DESIGNER}),
    CAN_MANAGE_LINKS: ALL_ROLES,
    CAN_CHAT: ALL_ROLES,
    CAN_MANAGE_TASKS: frozenset({ROLE_ADMIN, ROLE_DEVELOPER}),
    CAN_MANAGE_BUGS: frozenset({ROLE_ADMIN, ROLE_TESTER}),
    CAN_VIEW_TEST_QUEUE: frozenset({ROLE_ADMIN, ROLE_TESTER}),
}

ROLE_FOCUS: Dict[str, str] = {
    ROLE_ADMIN: "Full system management and oversight",
    ROLE_DEVELOPER: "Execution and task completion",
    ROLE_TESTER: "Quality verification and testing",
    ROLE_DESIGNER: "UI/UX design and visual assets",
}

ROLE_CAPABILITIES: Dict[str, List[str]] = {
    ROLE_ADMIN: [
        "Manage all projects and users",
        "Assign tasks to team members",
        "View all data and reports",
        "Configure system settings",
    ],
    ROLE_DEVELOPER: [
        "Update task status",
        "Submit EOD reports",
        "Upload code links/files",
        "Participate in project chat",
    ],
    ROLE_TESTER: [
        "Create and manage bugs",
        "Mark tasks as verified",
        "Access test queue",
        "Generate test reports",
    ],
    ROLE_DESIGNER: [
        "Upload design assets",
        "Update design task status",
        "Respond to feedback",
        "Manage asset library",
    ],
}


def has_permission(role: str, permission: str) -> bool:
    """Return True if ``role`` holds ``permission``. Unknown permissions are denied."""
    return role in PERMISSIONS.get(permission, frozenset())


def get_role_permissions(role: str) -> List[str]:
    """
    Get the sorted permission names granted to a role.

    Raises:
        ValueError: If role is not recognized
    """
    validate_role(role)
    return sorted(name for name, roles in PERMISSIONS.items() if role in roles)


def get_allowed_roles() -> Set[str]:
    """Get the set of all allowed roles."""
    return set(ALLOWED_ROLES)


def validate_role(role: str) -> None:
    """
    Validate that a role is allowed.

    Raises:
        ValueError: If role is not allowed
    """
    if role not in ALLOWED_ROLES:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}")


def get_role_focus(role: str) -> str:
    return ROLE_FOCUS.get(role, "")


def get_role_capabilities(role: str) -> List[str]:
    return list(ROLE_CAPABILITIES.get(role, []))


def is_admin_role(role: str) -> bool:
    return role == ROLE_ADMIN
