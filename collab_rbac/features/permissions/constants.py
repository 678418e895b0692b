"""
Permission taxonomy and the static role-permission table.

Permissions are ``"<resource>:<action>"`` strings drawn from a closed set.
Call sites should reference them through ``PERMISSIONS`` (e.g.
``PERMISSIONS.PROJECT.READ``) instead of typing the strings by hand.
"""
import enum
from types import MappingProxyType
from typing import Literal, Mapping, NamedTuple, get_args


Permission = Literal[
    "project:read",
    "project:write",
    "project:delete",
    "project:manage",
    "persona:read",
    "persona:write",
    "persona:delete",
    "persona:manage",
    "conversation:read",
    "conversation:write",
    "conversation:delete",
    "conversation:moderate",
    "milestone:read",
    "milestone:write",
    "milestone:delete",
    "milestone:evaluate",
    "artifact:read",
    "artifact:write",
    "artifact:delete",
    "artifact:manage",
    "user:read",
    "user:write",
    "user:delete",
    "user:manage",
    "analytics:read",
    "analytics:write",
    "system:admin",
    "system:config",
    "system:monitor",
]

ALL_PERMISSIONS: frozenset[str] = frozenset(get_args(Permission))


class Role(str, enum.Enum):
    """Platform roles. Each one maps to a fixed permission set."""
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMINISTRATOR = "administrator"


# ============================================================================
# Permission namespace
# ============================================================================

class ProjectPermissions(NamedTuple):
    READ: Permission = "project:read"
    WRITE: Permission = "project:write"
    DELETE: Permission = "project:delete"
    MANAGE: Permission = "project:manage"


class PersonaPermissions(NamedTuple):
    READ: Permission = "persona:read"
    WRITE: Permission = "persona:write"
    DELETE: Permission = "persona:delete"
    MANAGE: Permission = "persona:manage"


class ConversationPermissions(NamedTuple):
    READ: Permission = "conversation:read"
    WRITE: Permission = "conversation:write"
    DELETE: Permission = "conversation:delete"
    MODERATE: Permission = "conversation:moderate"


class MilestonePermissions(NamedTuple):
    READ: Permission = "milestone:read"
    WRITE: Permission = "milestone:write"
    DELETE: Permission = "milestone:delete"
    EVALUATE: Permission = "milestone:evaluate"


class ArtifactPermissions(NamedTuple):
    READ: Permission = "artifact:read"
    WRITE: Permission = "artifact:write"
    DELETE: Permission = "artifact:delete"
    MANAGE: Permission = "artifact:manage"


class UserPermissions(NamedTuple):
    READ: Permission = "user:read"
    WRITE: Permission = "user:write"
    DELETE: Permission = "user:delete"
    MANAGE: Permission = "user:manage"


class AnalyticsPermissions(NamedTuple):
    READ: Permission = "analytics:read"
    WRITE: Permission = "analytics:write"


class SystemPermissions(NamedTuple):
    ADMIN: Permission = "system:admin"
    CONFIG: Permission = "system:config"
    MONITOR: Permission = "system:monitor"


class PermissionCatalog(NamedTuple):
    """Immutable nested namespace of every permission, grouped by resource family."""
    PROJECT: ProjectPermissions = ProjectPermissions()
    PERSONA: PersonaPermissions = PersonaPermissions()
    CONVERSATION: ConversationPermissions = ConversationPermissions()
    MILESTONE: MilestonePermissions = MilestonePermissions()
    ARTIFACT: ArtifactPermissions = ArtifactPermissions()
    USER: UserPermissions = UserPermissions()
    ANALYTICS: AnalyticsPermissions = AnalyticsPermissions()
    SYSTEM: SystemPermissions = SystemPermissions()

    def as_dict(self) -> dict[str, dict[str, str]]:
        """Plain-dict view, e.g. ``{"PROJECT": {"READ": "project:read", ...}, ...}``."""
        return {family: group._asdict() for family, group in self._asdict().items()}


PERMISSIONS = PermissionCatalog()


# ============================================================================
# Role-permission table
# ============================================================================

_STUDENT_PERMISSIONS: frozenset[str] = frozenset({
    PERMISSIONS.PROJECT.READ,
    PERMISSIONS.PERSONA.READ,
    PERMISSIONS.CONVERSATION.READ,
    PERMISSIONS.CONVERSATION.WRITE,
    PERMISSIONS.MILESTONE.READ,
    PERMISSIONS.MILESTONE.WRITE,
    PERMISSIONS.ARTIFACT.READ,
    PERMISSIONS.ARTIFACT.WRITE,
    PERMISSIONS.USER.READ,  # own profile and team members
})

_INSTRUCTOR_PERMISSIONS: frozenset[str] = frozenset({
    PERMISSIONS.PROJECT.READ,
    PERMISSIONS.PROJECT.WRITE,
    PERMISSIONS.PROJECT.MANAGE,
    PERMISSIONS.PERSONA.READ,
    PERMISSIONS.PERSONA.WRITE,
    PERMISSIONS.PERSONA.MANAGE,
    PERMISSIONS.CONVERSATION.READ,
    PERMISSIONS.CONVERSATION.WRITE,
    PERMISSIONS.CONVERSATION.MODERATE,
    PERMISSIONS.MILESTONE.READ,
    PERMISSIONS.MILESTONE.WRITE,
    PERMISSIONS.MILESTONE.EVALUATE,
    PERMISSIONS.ARTIFACT.READ,
    PERMISSIONS.ARTIFACT.WRITE,
    PERMISSIONS.ARTIFACT.MANAGE,
    PERMISSIONS.USER.READ,
    PERMISSIONS.USER.WRITE,
    PERMISSIONS.ANALYTICS.READ,
    PERMISSIONS.ANALYTICS.WRITE,
})

_ADMINISTRATOR_PERMISSIONS: frozenset[str] = ALL_PERMISSIONS

# Built once at import time and never mutated.
ROLE_PERMISSIONS: Mapping[Role, frozenset[str]] = MappingProxyType({
    Role.STUDENT: _STUDENT_PERMISSIONS,
    Role.INSTRUCTOR: _INSTRUCTOR_PERMISSIONS,
    Role.ADMINISTRATOR: _ADMINISTRATOR_PERMISSIONS,
})


# Role groups used by the convenience dependencies
INSTRUCTOR_ROLES: tuple[Role, ...] = (Role.INSTRUCTOR, Role.ADMINISTRATOR)
ADMINISTRATOR_ROLES: tuple[Role, ...] = (Role.ADMINISTRATOR,)
AUTHENTICATED_ROLES: tuple[Role, ...] = (Role.STUDENT, Role.INSTRUCTOR, Role.ADMINISTRATOR)
