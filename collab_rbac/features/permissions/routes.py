"""
Permission API routes.

Exposes the evaluator to clients (e.g. for UI feature gating) and the static
role table to administrators.
"""
from fastapi import APIRouter, Depends

from collab_rbac.features.permissions.constants import PERMISSIONS, ROLE_PERMISSIONS
from collab_rbac.features.permissions.decision import can_perform_action
from collab_rbac.features.permissions.dependencies import (
    require_administrator,
    require_student,
)
from collab_rbac.features.permissions.errors import OwnershipCheckError, ResourceCheckFailed
from collab_rbac.features.permissions.evaluator import sorted_permissions
from collab_rbac.features.permissions.ownership import ResourceOwnershipOracle, get_ownership_oracle
from collab_rbac.features.permissions.principal import Principal
from collab_rbac.features.permissions.schemas import (
    ErrorResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PrincipalPermissionsResponse,
    RolePermissionsResponse,
)
from collab_rbac.utils import get_logger


log = get_logger(__name__)
router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    }
)


@router.get("/me", response_model=PrincipalPermissionsResponse)
async def get_my_permissions(current_user: Principal = Depends(require_student)):
    """Role and permission list of the current principal."""
    role = getattr(current_user.role, "value", current_user.role)
    return PrincipalPermissionsResponse(
        user_id=str(current_user.id),
        role=str(role),
        permissions=sorted_permissions(current_user),
    )


@router.post(
    "/check",
    response_model=PermissionCheckResponse,
    responses={500: {"model": ErrorResponse}},
)
async def check_permission(
    check_request: PermissionCheckRequest,
    current_user: Principal = Depends(require_student),
    oracle: ResourceOwnershipOracle = Depends(get_ownership_oracle),
):
    """Check if the current principal may perform an action, optionally on a resource instance."""
    try:
        allowed = await can_perform_action(
            current_user,
            check_request.permission,
            resource_type=check_request.resource_type,
            resource_id=check_request.resource_id,
            oracle=oracle,
        )
    except OwnershipCheckError:
        log.exception(
            "Error checking resource access for user %s on %s %s",
            current_user.id, check_request.resource_type, check_request.resource_id
        )
        raise ResourceCheckFailed()

    return PermissionCheckResponse(
        allowed=allowed,
        reason=None if allowed else "Permission denied"
    )


@router.get("/catalog")
async def get_permission_catalog(_current_user: Principal = Depends(require_student)):
    """Every permission, grouped by resource family."""
    return PERMISSIONS.as_dict()


@router.get("/roles", response_model=RolePermissionsResponse)
async def get_role_permissions(_admin: Principal = Depends(require_administrator)):
    """The static role-permission table (administrators only)."""
    return RolePermissionsResponse(
        roles={role.value: sorted(permissions) for role, permissions in ROLE_PERMISSIONS.items()}
    )
