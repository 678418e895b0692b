"""
The authenticated actor as seen by the authorization core.
"""
from typing import Optional, Protocol

from fastapi import Request

from collab_rbac.features.permissions.constants import Role


class Principal(Protocol):
    """
    Anything exposing an id, a role and an activity flag.

    The persisted ``User`` model satisfies this, as does any object an
    upstream authentication step attaches. The core never mutates it.
    """
    id: str
    role: Role | str
    is_active: bool


def get_request_principal(request: Request) -> Optional[Principal]:
    """
    FastAPI dependency returning the principal attached by the upstream
    authentication step, or None when the request is anonymous.
    """
    return getattr(request.state, "principal", None)
