"""
Coarse, instance-independent permission checks.

All functions are pure: they read an immutable role table and never raise for
a "not permitted" outcome. Unknown roles resolve to an empty permission set.
"""
from typing import Iterable, Mapping, Optional

from collab_rbac.features.permissions.constants import ROLE_PERMISSIONS, Role
from collab_rbac.features.permissions.principal import Principal


def coerce_role(value: object) -> Optional[Role]:
    """Return the Role for ``value`` (member or plain string), or None if unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


class PermissionEvaluator:
    """
    Answers what a role may ever do, against an injected role table.

    Usage:
        evaluator = PermissionEvaluator(ROLE_PERMISSIONS)
        evaluator.has_permission(user, PERMISSIONS.PROJECT.READ)
    """

    def __init__(self, table: Mapping[Role, frozenset[str]]):
        self._table = table

    def permissions_for_role(self, role: object) -> frozenset[str]:
        key = coerce_role(role)
        if key is None:
            return frozenset()
        return frozenset(self._table.get(key, ()))

    def has_permission(self, principal: Principal, permission: str) -> bool:
        return permission in self.permissions_for_role(principal.role)

    def has_any_permission(self, principal: Principal, permissions: Iterable[str]) -> bool:
        """True if at least one permission is held. An empty list is never a grant."""
        granted = self.permissions_for_role(principal.role)
        return any(permission in granted for permission in permissions)

    def has_all_permissions(self, principal: Principal, permissions: Iterable[str]) -> bool:
        """True if every permission is held. An empty list is vacuously true."""
        granted = self.permissions_for_role(principal.role)
        return all(permission in granted for permission in permissions)

    def get_permissions(self, principal: Principal) -> frozenset[str]:
        """The principal's permission set, as a fresh immutable copy."""
        return self.permissions_for_role(principal.role)


default_evaluator = PermissionEvaluator(ROLE_PERMISSIONS)


def has_permission(principal: Principal, permission: str) -> bool:
    """Check if the principal's role grants ``permission``."""
    return default_evaluator.has_permission(principal, permission)


def has_any_permission(principal: Principal, permissions: Iterable[str]) -> bool:
    """Check if the principal's role grants any of ``permissions``."""
    return default_evaluator.has_any_permission(principal, permissions)


def has_all_permissions(principal: Principal, permissions: Iterable[str]) -> bool:
    """Check if the principal's role grants all of ``permissions``."""
    return default_evaluator.has_all_permissions(principal, permissions)


def get_permissions(principal: Principal) -> frozenset[str]:
    return default_evaluator.get_permissions(principal)


def sorted_permissions(principal: Principal) -> list[str]:
    """Stable, sorted permission list for JSON responses."""
    return sorted(get_permissions(principal))
