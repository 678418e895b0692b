"""
Resource-ownership oracles.

An oracle answers "may this principal act on this specific resource instance".
The decision function only consults it after the coarse permission check has
passed, and never for administrators.

All five scoped families (project, persona, conversation, milestone, artifact)
are currently answered by the same project-membership rule; the resource id
is treated as a project id.
"""
import inspect
from typing import Protocol

from fastapi import Depends
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from collab_rbac.core.database.engine import get_db
from collab_rbac.features.permissions.constants import Role
from collab_rbac.features.permissions.evaluator import coerce_role
from collab_rbac.features.permissions.principal import Principal
from collab_rbac.features.projects.models import Project, project_students
from collab_rbac.utils import get_logger


log = get_logger(__name__)


class ResourceOwnershipOracle(Protocol):
    """Instance-level access predicate. May perform I/O; may raise on infrastructure failure."""

    async def can_access_resource_instance(self, principal: Principal, resource_id: str) -> bool:
        ...


class PrincipalOwnershipOracle:
    """
    Delegates to the principal's own ``can_access_resource_instance`` method.

    For hosts whose principal objects already know their memberships.
    The method may return a bool or an awaitable of one.
    """

    async def can_access_resource_instance(self, principal: Principal, resource_id: str) -> bool:
        result = principal.can_access_resource_instance(resource_id)  # type: ignore[attr-defined]
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


class ProjectMembershipOracle:
    """
    Project-membership rule backed by the projects table.

    - unknown project: no access
    - administrator: access
    - instructor: access if they own the project
    - student: access if they are on the project's roster
    - any other role: no access
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def can_access_resource_instance(self, principal: Principal, resource_id: str) -> bool:
        role = coerce_role(principal.role)
        if role is Role.ADMINISTRATOR:
            return True

        result = await self.db.execute(
            select(Project.instructor_id).where(Project.id == resource_id)
        )
        instructor_id = result.scalar_one_or_none()
        if instructor_id is None:
            log.debug(f"Project {resource_id} not found for user {principal.id}")
            return False

        if role is Role.INSTRUCTOR:
            return instructor_id == principal.id

        if role is Role.STUDENT:
            result = await self.db.execute(
                select(project_students.c.user_id).where(
                    and_(
                        project_students.c.project_id == resource_id,
                        project_students.c.user_id == principal.id
                    )
                )
            )
            return result.first() is not None

        return False


async def get_ownership_oracle(db: AsyncSession = Depends(get_db)) -> ResourceOwnershipOracle:
    """
    FastAPI dependency supplying the default oracle.

    Override it to plug in another ownership source:
        app.dependency_overrides[get_ownership_oracle] = lambda: PrincipalOwnershipOracle()
    """
    return ProjectMembershipOracle(db)
