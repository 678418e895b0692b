"""
Authorization failure taxonomy and its JSON rendering.

Every denial is raised from a dependency as an ``AuthorizationError`` and
rendered by ``authorization_error_handler`` as::

    {"success": false, "message": "...", "code": "...", ...context}
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, status
from starlette.requests import Request
from starlette.responses import JSONResponse


class AuthorizationError(Exception):
    """Base class for denials that terminate the request pipeline."""
    status_code: int = status.HTTP_403_FORBIDDEN
    code: str = "AUTHORIZATION_ERROR"
    message: str = "Access denied"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.message
        self.context: Dict[str, Any] = context
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "code": self.code,
            **self.context,
        }


class AuthenticationRequired(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"
    message = "Authentication required"


class PermissionDenied(AuthorizationError):
    code = "PERMISSION_DENIED"
    message = "Insufficient permissions"


class RoleDenied(AuthorizationError):
    code = "ROLE_DENIED"
    message = "Insufficient role privileges"


class ResourceIdMissing(AuthorizationError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "RESOURCE_ID_MISSING"
    message = "Resource ID is required"


class ResourceAccessDenied(AuthorizationError):
    code = "RESOURCE_ACCESS_DENIED"
    message = "Access to resource denied"


class ResourceCheckFailed(AuthorizationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "RESOURCE_CHECK_ERROR"
    message = "Error checking resource access"


class OwnershipCheckError(Exception):
    """The ownership oracle raised instead of answering."""

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"Ownership check failed for {resource_type} {resource_id}")


async def authorization_error_handler(_request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope renderer on an application."""
    app.add_exception_handler(AuthorizationError, authorization_error_handler)
