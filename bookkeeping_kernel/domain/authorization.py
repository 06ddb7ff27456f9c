"""
bookkeeping_kernel.domain.authorization -- Role checks before state changes.

Responsibility:
    Decide whether a role may perform an action.  Actor identity and role
    assignment live outside the kernel; callers pass the role the actor is
    acting under.

Architecture position:
    Kernel > Domain -- pure.  Called by the services before any transition.
    The role -> permissions map comes from configuration (``roles`` in the
    settings file) and falls back to DEFAULT_ROLE_PERMISSIONS.

Invariants:
    - Fail closed: an unknown or empty role has no permissions.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum


class Permission(str, Enum):
    CREATE_ENTRIES = "create_entries"
    EDIT_ENTRIES = "edit_entries"
    DELETE_ENTRIES = "delete_entries"
    APPROVE_ENTRIES = "approve_entries"
    VOID_ENTRIES = "void_entries"
    CLOSE_PERIODS = "close_periods"
    MANAGE_PERIODS = "manage_periods"
    MANAGE_ACCOUNTS = "manage_accounts"


DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "admin": frozenset(p.value for p in Permission),
    "accountant": frozenset({
        Permission.CREATE_ENTRIES.value,
        Permission.EDIT_ENTRIES.value,
        Permission.DELETE_ENTRIES.value,
        Permission.MANAGE_ACCOUNTS.value,
    }),
    "viewer": frozenset(),
}


def check_permission(
    role: str | None,
    permission: Permission | str,
    role_permissions: Mapping[str, frozenset[str]] | None = None,
) -> tuple[bool, str]:
    """Check whether ``role`` grants ``permission``.

    Returns:
        (allowed, reason). reason is empty when allowed, or a short message
        when denied.
    """
    permission = Permission(permission).value
    role_map = role_permissions if role_permissions is not None else DEFAULT_ROLE_PERMISSIONS

    if not role or not role.strip():
        return (False, f"No role supplied; '{permission}' denied")
    if role not in role_map:
        return (False, f"Unknown role '{role}'; '{permission}' denied")
    if permission not in role_map[role]:
        return (False, f"Role '{role}' lacks permission '{permission}'")
    return (True, "")
