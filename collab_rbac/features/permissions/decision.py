"""
Fine-grained access decisions: may principal P perform action A on instance R
of resource family T.
"""
from typing import Optional

from collab_rbac.features.permissions.constants import PERMISSIONS, Role
from collab_rbac.features.permissions.errors import OwnershipCheckError
from collab_rbac.features.permissions.evaluator import (
    PermissionEvaluator,
    coerce_role,
    default_evaluator,
)
from collab_rbac.features.permissions.ownership import ResourceOwnershipOracle
from collab_rbac.features.permissions.principal import Principal
from collab_rbac.features.permissions.resources import (
    ScopedResource,
    UnscopedResource,
    UserResource,
    resolve_resource,
)
from collab_rbac.utils import get_logger


log = get_logger(__name__)


async def can_access_resource(
    principal: Principal,
    resource_type: str,
    resource_id: str,
    action: str,
    oracle: Optional[ResourceOwnershipOracle] = None,
    evaluator: Optional[PermissionEvaluator] = None,
) -> bool:
    """
    Decide instance-level access. Checks run in order and stop at the first answer:

    1. Administrators are allowed without any further check.
    2. Without the coarse ``action`` permission the answer is no.
    3. Project-scoped families ask the ownership oracle.
    4. ``user`` records: always yes for the principal's own id, otherwise
       ``user:manage`` decides.
    5. Any other family is allowed, since step 2 already gated the action.

    Raises:
        ValueError: step 3 was reached without an oracle
        OwnershipCheckError: the oracle raised; the original exception is chained
    """
    evaluator = evaluator or default_evaluator

    if coerce_role(principal.role) is Role.ADMINISTRATOR:
        return True

    if not evaluator.has_permission(principal, action):
        return False

    match resolve_resource(resource_type, resource_id):
        case ScopedResource(family=family, resource_id=scoped_id):
            if oracle is None:
                raise ValueError("An ownership oracle is required for resource-scoped checks")
            try:
                return bool(await oracle.can_access_resource_instance(principal, scoped_id))
            except Exception as exc:
                raise OwnershipCheckError(family.value, scoped_id) from exc
        case UserResource(user_id=user_id):
            if user_id == str(principal.id):
                return True
            return evaluator.has_permission(principal, PERMISSIONS.USER.MANAGE)
        case UnscopedResource(resource_type=other_type):
            # No ownership rule exists for this family; allowed once the coarse check passed.
            log.debug(f"No ownership rule for resource type {other_type!r}; allowing {action}")
            return True


async def can_perform_action(
    principal: Principal,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    oracle: Optional[ResourceOwnershipOracle] = None,
    evaluator: Optional[PermissionEvaluator] = None,
) -> bool:
    """
    Coarse check when no resource is named, full decision otherwise.

    Raises:
        ValueError: a project-scoped resource was named but no oracle was supplied
        OwnershipCheckError: the oracle raised
    """
    evaluator = evaluator or default_evaluator

    if not resource_type or not resource_id:
        return evaluator.has_permission(principal, action)

    return await can_access_resource(principal, resource_type, resource_id, action, oracle, evaluator)
