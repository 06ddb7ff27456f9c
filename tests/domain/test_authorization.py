"""Tests for role checks (bookkeeping_kernel/domain/authorization.py)."""

import pytest

from bookkeeping_kernel.domain.authorization import Permission, check_permission


class TestDefaultRoles:

    @pytest.mark.parametrize("permission", list(Permission))
    def test_admin_has_everything(self, permission):
        assert check_permission("admin", permission) == (True, "")

    @pytest.mark.parametrize(
        "permission, allowed",
        [
            (Permission.CREATE_ENTRIES, True),
            (Permission.EDIT_ENTRIES, True),
            (Permission.DELETE_ENTRIES, True),
            (Permission.MANAGE_ACCOUNTS, True),
            (Permission.APPROVE_ENTRIES, False),
            (Permission.VOID_ENTRIES, False),
            (Permission.CLOSE_PERIODS, False),
        ],
    )
    def test_accountant(self, permission, allowed):
        assert check_permission("accountant", permission)[0] is allowed

    @pytest.mark.parametrize("permission", list(Permission))
    def test_viewer_has_nothing(self, permission):
        allowed, reason = check_permission("viewer", permission)

        assert not allowed
        assert "viewer" in reason


class TestFailClosed:

    @pytest.mark.parametrize("role", [None, "", "   ", "auditor"])
    def test_unknown_or_missing_role(self, role):
        allowed, reason = check_permission(role, Permission.CREATE_ENTRIES)

        assert not allowed
        assert reason

    def test_custom_role_map(self):
        roles = {"clerk": frozenset({"create_entries"})}

        assert check_permission("clerk", "create_entries", roles)[0]
        assert not check_permission("admin", "create_entries", roles)[0]
