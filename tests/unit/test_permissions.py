import pytest

from projecthub.utils.permissions import (
    CAN_CHAT,
    CAN_MANAGE_CLIENTS,
    CAN_MANAGE_EODS,
    CAN_MANAGE_TASKS,
    CAN_UPLOAD_DESIGNS,
    get_allowed_roles,
    get_role_capabilities,
    get_role_focus,
    get_role_permissions,
    has_permission,
    is_admin_role,
    validate_role,
)


def test_admin_only_permissions():
    assert has_permission("admin", CAN_MANAGE_CLIENTS)
    for role in ("developer", "tester", "designer"):
        assert not has_permission(role, CAN_MANAGE_CLIENTS)


def test_contributor_roles_submit_reports_but_admin_does_not():
    assert not has_permission("admin", CAN_MANAGE_EODS)
    for role in ("developer", "tester", "designer"):
        assert has_permission(role, CAN_MANAGE_EODS)


def test_role_specific_permissions():
    assert has_permission("developer", CAN_MANAGE_TASKS)
    assert not has_permission("tester", CAN_MANAGE_TASKS)
    assert has_permission("designer", CAN_UPLOAD_DESIGNS)
    assert not has_permission("developer", CAN_UPLOAD_DESIGNS)


def test_everyone_can_chat():
    assert all(has_permission(role, CAN_CHAT) for role in get_allowed_roles())


def test_unknown_permission_is_denied():
    assert not has_permission("admin", "CAN_LAUNCH_ROCKETS")


def test_get_role_permissions_sorted_and_validated():
    perms = get_role_permissions("developer")
    assert perms == sorted(perms)
    assert CAN_MANAGE_TASKS in perms
    with pytest.raises(ValueError):
        get_role_permissions("owner")


def test_validate_role_and_metadata():
    validate_role("tester")
    with pytest.raises(ValueError):
        validate_role("superuser")
    assert is_admin_role("admin")
    assert not is_admin_role("developer")
    assert get_role_focus("designer") == "UI/UX design and visual assets"
    assert "Submit EOD reports" in get_role_capabilities("developer")
    assert get_role_capabilities("unknown") == []
