"""
Pydantic schemas for the permission endpoints and the error envelope.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from collab_rbac.features.permissions.constants import ALL_PERMISSIONS


class ErrorResponse(BaseModel):
    """Envelope returned by every authorization denial."""
    success: bool = False
    message: str
    code: str = Field(..., description="Stable machine-readable code, e.g. PERMISSION_DENIED")

    # Context fields such as requiredPermission or resourceId are passed through as-is
    model_config = ConfigDict(extra="allow")


class PermissionCheckRequest(BaseModel):
    """Schema for checking whether the current principal may perform an action."""
    permission: str = Field(..., description="Permission tag, e.g. 'project:read'")
    resource_type: Optional[str] = Field(None, description="Resource family for an instance-level check")
    resource_id: Optional[str] = Field(None, description="Resource instance id for an instance-level check")

    @field_validator('permission')
    @classmethod
    def permission_known(cls, v: str) -> str:
        """Reject tags outside the permission taxonomy."""
        if v not in ALL_PERMISSIONS:
            raise ValueError(f"Unknown permission: {v}")
        return v


class PermissionCheckResponse(BaseModel):
    """Schema for permission check response."""
    allowed: bool
    reason: Optional[str] = None


class PrincipalPermissionsResponse(BaseModel):
    """The current principal's role and everything it grants."""
    user_id: str
    role: str
    permissions: List[str] = []


class RolePermissionsResponse(BaseModel):
    """The static role table, one sorted list per role."""
    roles: Dict[str, List[str]]
