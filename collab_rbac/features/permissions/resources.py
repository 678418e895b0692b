"""
Resource references for instance-level checks.

A resource type string from a route is resolved into one of three variants:

- ScopedResource: one of the project-backed families, checked through the
  ownership oracle
- UserResource: a user record, where self-access is always allowed
- UnscopedResource: any other family, with no instance-level rule
"""
import enum
from dataclasses import dataclass
from typing import Union


class ScopedFamily(str, enum.Enum):
    """Resource families whose instances are scoped by project membership."""
    PROJECT = "project"
    PERSONA = "persona"
    CONVERSATION = "conversation"
    MILESTONE = "milestone"
    ARTIFACT = "artifact"


USER_RESOURCE_TYPE = "user"


@dataclass(frozen=True)
class ScopedResource:
    family: ScopedFamily
    resource_id: str


@dataclass(frozen=True)
class UserResource:
    user_id: str


@dataclass(frozen=True)
class UnscopedResource:
    resource_type: str
    resource_id: str


ResourceRef = Union[ScopedResource, UserResource, UnscopedResource]


def resolve_resource(resource_type: str, resource_id: str) -> ResourceRef:
    """
    Build the resource variant for a ``(type, id)`` pair.

    >>> resolve_resource("milestone", "M1")
    ScopedResource(family=<ScopedFamily.MILESTONE: 'milestone'>, resource_id='M1')
    """
    if resource_type == USER_RESOURCE_TYPE:
        return UserResource(user_id=resource_id)
    try:
        family = ScopedFamily(resource_type)
    except ValueError:
        return UnscopedResource(resource_type=resource_type, resource_id=resource_id)
    return ScopedResource(family=family, resource_id=resource_id)
