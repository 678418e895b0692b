"""
FastAPI dependencies for route protection.

Each factory returns a dependency that either returns the current principal
(the route runs) or raises an ``AuthorizationError`` that the registered
exception handler renders as the JSON error envelope. The missing-principal
check always runs first.

Usage:
    @router.delete("/projects/{project_id}")
    async def delete_project(
        project_id: str,
        user: Principal = Depends(require_permission(PERMISSIONS.PROJECT.DELETE))
    ):
        ...

    @router.get(
        "/projects/{project_id}",
        dependencies=[Depends(require_instructor), Depends(require_project_access(PERMISSIONS.PROJECT.READ))],
    )
    async def get_project(project_id: str):
        ...
"""
from typing import Iterable, Optional

from fastapi import Depends, Request

from collab_rbac.features.permissions.constants import (
    ADMINISTRATOR_ROLES,
    AUTHENTICATED_ROLES,
    INSTRUCTOR_ROLES,
    Role,
)
from collab_rbac.features.permissions.decision import can_access_resource
from collab_rbac.features.permissions.errors import (
    AuthenticationRequired,
    OwnershipCheckError,
    PermissionDenied,
    ResourceAccessDenied,
    ResourceCheckFailed,
    ResourceIdMissing,
    RoleDenied,
)
from collab_rbac.features.permissions.evaluator import (
    coerce_role,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from collab_rbac.features.permissions.ownership import ResourceOwnershipOracle, get_ownership_oracle
from collab_rbac.features.permissions.principal import Principal, get_request_principal
from collab_rbac.utils import get_logger


log = get_logger(__name__)

# Path parameters searched for the resource id, first present wins
RESOURCE_ID_PARAMS: tuple[str, ...] = ("id", "projectId", "project_id", "userId", "user_id")


def _role_name(role: object) -> str:
    return role.value if isinstance(role, Role) else str(role)


def _authenticated(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise AuthenticationRequired()
    return principal


def extract_resource_id(request: Request) -> Optional[str]:
    """Return the first non-empty resource id path parameter, if any."""
    for name in RESOURCE_ID_PARAMS:
        value = request.path_params.get(name)
        if value:
            return str(value)
    return None


# ============================================================================
# Permission dependencies
# ============================================================================

def require_permission(permission: str):
    """Require a single permission."""
    async def permission_dependency(
        principal: Optional[Principal] = Depends(get_request_principal)
    ) -> Principal:
        principal = _authenticated(principal)
        if not has_permission(principal, permission):
            log.warning(f"Permission denied: User {principal.id} attempted to access {permission}")
            raise PermissionDenied(requiredPermission=permission)
        return principal

    return permission_dependency


def require_any_permission(permissions: Iterable[str]):
    """Require at least one of ``permissions``. An empty list denies everyone."""
    required = list(permissions)

    async def permission_dependency(
        principal: Optional[Principal] = Depends(get_request_principal)
    ) -> Principal:
        principal = _authenticated(principal)
        if not has_any_permission(principal, required):
            log.warning(
                f"Permission denied: User {principal.id} attempted to access permissions: {', '.join(required)}"
            )
            raise PermissionDenied(requiredPermissions=required)
        return principal

    return permission_dependency


def require_all_permissions(permissions: Iterable[str]):
    """Require every one of ``permissions``. An empty list admits any authenticated principal."""
    required = list(permissions)

    async def permission_dependency(
        principal: Optional[Principal] = Depends(get_request_principal)
    ) -> Principal:
        principal = _authenticated(principal)
        if not has_all_permissions(principal, required):
            log.warning(
                f"Permission denied: User {principal.id} attempted to access all permissions: {', '.join(required)}"
            )
            raise PermissionDenied(requiredPermissions=required)
        return principal

    return permission_dependency


# ============================================================================
# Role dependencies
# ============================================================================

def require_role(roles: Iterable[Role | str]):
    """
    Require the principal's role to be one of ``roles``.

    Unknown role names in ``roles`` match nobody.
    """
    roles = list(roles)
    required = [_role_name(role) for role in roles]
    allowed = {coerce_role(role) for role in roles} - {None}

    async def role_dependency(
        principal: Optional[Principal] = Depends(get_request_principal)
    ) -> Principal:
        principal = _authenticated(principal)
        if coerce_role(principal.role) not in allowed:
            user_role = _role_name(principal.role)
            log.warning(
                f"Role denied: User {principal.id} ({user_role}) attempted to access role-restricted endpoint "
                f"requiring {', '.join(required)}"
            )
            raise RoleDenied(requiredRoles=required, userRole=user_role)
        return principal

    return role_dependency


async def require_authenticated(
    principal: Optional[Principal] = Depends(get_request_principal)
) -> Principal:
    """Only require that a principal is attached."""
    return _authenticated(principal)


# ============================================================================
# Resource dependencies
# ============================================================================

def require_resource_access(resource_type: str, action: str):
    """
    Require ``action`` on the resource instance named in the request path.

    The id is the first of ``RESOURCE_ID_PARAMS`` present in the path.
    """
    async def resource_dependency(
        request: Request,
        principal: Optional[Principal] = Depends(get_request_principal),
        oracle: ResourceOwnershipOracle = Depends(get_ownership_oracle),
    ) -> Principal:
        principal = _authenticated(principal)

        resource_id = extract_resource_id(request)
        if not resource_id:
            log.warning(
                f"Resource ID missing: User {principal.id} attempted to {action} {resource_type} without an id"
            )
            raise ResourceIdMissing()

        try:
            has_access = await can_access_resource(principal, resource_type, resource_id, action, oracle)
        except OwnershipCheckError:
            log.exception(
                f"Error checking resource access: User {principal.id} on {resource_type} {resource_id}"
            )
            raise ResourceCheckFailed()

        if not has_access:
            log.warning(
                f"Resource access denied: User {principal.id} attempted to {action} {resource_type} {resource_id}"
            )
            raise ResourceAccessDenied(
                resourceType=resource_type,
                resourceId=resource_id,
                requiredAction=action,
            )

        return principal

    return resource_dependency


# ============================================================================
# Convenience dependencies
# ============================================================================

require_instructor = require_role(INSTRUCTOR_ROLES)
require_administrator = require_role(ADMINISTRATOR_ROLES)
require_student = require_role(AUTHENTICATED_ROLES)


def require_project_access(action: str):
    return require_resource_access("project", action)


def require_persona_access(action: str):
    return require_resource_access("persona", action)


def require_conversation_access(action: str):
    return require_resource_access("conversation", action)


def require_milestone_access(action: str):
    return require_resource_access("milestone", action)


def require_artifact_access(action: str):
    return require_resource_access("artifact", action)


def require_user_access(action: str):
    return require_resource_access("user", action)
