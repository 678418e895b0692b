"""
Tests for the enforcement dependencies.

Requirements:
- No principal → 401 AUTH_REQUIRED before any permission logic
- Denials → structured envelope, route body never runs
- Each denial with a principal → exactly one warning naming the principal
- Oracle failure → 500 RESOURCE_CHECK_ERROR, distinct from a denial
"""
import logging

import pytest
from fastapi import Depends

from collab_rbac.features.permissions.constants import PERMISSIONS
from collab_rbac.features.permissions.dependencies import (
    require_administrator,
    require_all_permissions,
    require_any_permission,
    require_artifact_access,
    require_authenticated,
    require_instructor,
    require_permission,
    require_project_access,
    require_resource_access,
    require_role,
    require_student,
    require_user_access,
)


pytestmark = pytest.mark.anyio


def _protect(app, path, dependency, calls=None):
    calls = calls if calls is not None else []

    @app.get(path, dependencies=[Depends(dependency)])
    async def handler():
        calls.append(path)
        return {"ok": True}

    return calls


def _warnings(caplog):
    return [
        record for record in caplog.records
        if record.name.startswith("collab_rbac") and record.levelno == logging.WARNING
    ]


# ============================================================================
# Authentication pre-check
# ============================================================================

@pytest.mark.parametrize("dependency", [
    require_permission("project:read"),
    require_any_permission(["project:read"]),
    require_all_permissions(["project:read"]),
    require_role(["student"]),
    require_resource_access("project", "project:read"),
    require_authenticated,
])
async def test_missing_principal_is_rejected_before_any_check(build_app, call, make_oracle, caplog, dependency):
    oracle = make_oracle(result=True)
    app = build_app(principal=None, oracle=oracle)
    calls = _protect(app, "/things/{id}", dependency)

    r = await call(app, "GET", "/things/P1")

    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Authentication required", "code": "AUTH_REQUIRED"}
    assert calls == []
    assert oracle.calls == []
    assert _warnings(caplog) == []


# ============================================================================
# require_permission / require_any_permission / require_all_permissions
# ============================================================================

async def test_instructor_with_permission_reaches_the_route(build_app, call, instructor):
    app = build_app(principal=instructor)
    calls = _protect(app, "/projects", require_permission(PERMISSIONS.PROJECT.MANAGE))

    r = await call(app, "GET", "/projects")

    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert calls == ["/projects"]


async def test_student_without_permission_gets_403(build_app, call, student, caplog):
    app = build_app(principal=student)
    calls = _protect(app, "/projects", require_permission("project:delete"))

    r = await call(app, "GET", "/projects")

    assert r.status_code == 403
    assert r.json() == {
        "success": False,
        "message": "Insufficient permissions",
        "code": "PERMISSION_DENIED",
        "requiredPermission": "project:delete",
    }
    assert calls == []
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert student.id in warnings[0].getMessage()
    assert "project:delete" in warnings[0].getMessage()


async def test_any_permission_allows_with_one_match(build_app, call, student):
    app = build_app(principal=student)
    _protect(app, "/x", require_any_permission(["project:delete", "project:read"]))

    r = await call(app, "GET", "/x")
    assert r.status_code == 200


async def test_any_permission_denial_lists_the_permissions(build_app, call, student, caplog):
    app = build_app(principal=student)
    _protect(app, "/x", require_any_permission(["project:delete", "system:admin"]))

    r = await call(app, "GET", "/x")

    assert r.status_code == 403
    body = r.json()
    assert body["code"] == "PERMISSION_DENIED"
    assert body["requiredPermissions"] == ["project:delete", "system:admin"]
    assert len(_warnings(caplog)) == 1


async def test_any_permission_with_empty_list_denies(build_app, call, administrator):
    app = build_app(principal=administrator)
    _protect(app, "/x", require_any_permission([]))

    r = await call(app, "GET", "/x")
    assert r.status_code == 403
    assert r.json()["requiredPermissions"] == []


async def test_all_permissions(build_app, call, instructor):
    app = build_app(principal=instructor)
    _protect(app, "/ok", require_all_permissions(["analytics:read", "analytics:write"]))
    _protect(app, "/no", require_all_permissions(["analytics:read", "system:monitor"]))
    _protect(app, "/empty", require_all_permissions([]))

    assert (await call(app, "GET", "/ok")).status_code == 200
    assert (await call(app, "GET", "/empty")).status_code == 200

    r = await call(app, "GET", "/no")
    assert r.status_code == 403
    assert r.json()["requiredPermissions"] == ["analytics:read", "system:monitor"]


# ============================================================================
# require_role
# ============================================================================

async def test_role_denial_reports_required_and_actual_role(build_app, call, student, caplog):
    app = build_app(principal=student)
    calls = _protect(app, "/admin", require_role(["instructor", "administrator"]))

    r = await call(app, "GET", "/admin")

    assert r.status_code == 403
    assert r.json() == {
        "success": False,
        "message": "Insufficient role privileges",
        "code": "ROLE_DENIED",
        "requiredRoles": ["instructor", "administrator"],
        "userRole": "student",
    }
    assert calls == []
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert student.id in warnings[0].getMessage()


async def test_role_groups(build_app, call, student, instructor, administrator):
    for principal, expected in (
        (student, {"/instructor": 403, "/admin": 403, "/any": 200}),
        (instructor, {"/instructor": 200, "/admin": 403, "/any": 200}),
        (administrator, {"/instructor": 200, "/admin": 200, "/any": 200}),
    ):
        app = build_app(principal=principal)
        _protect(app, "/instructor", require_instructor)
        _protect(app, "/admin", require_administrator)
        _protect(app, "/any", require_student)

        for path, status in expected.items():
            assert (await call(app, "GET", path)).status_code == status, (principal.role, path)


async def test_unknown_principal_role_matches_no_group(build_app, call, make_principal):
    app = build_app(principal=make_principal(id="U-GUEST", role="guest"))
    _protect(app, "/any", require_student)

    r = await call(app, "GET", "/any")
    assert r.status_code == 403
    assert r.json()["userRole"] == "guest"


# ============================================================================
# require_resource_access
# ============================================================================

async def test_resource_access_denied_by_oracle(build_app, call, student, make_oracle, caplog):
    oracle = make_oracle(result=False)
    app = build_app(principal=student, oracle=oracle)
    calls = _protect(app, "/projects/{id}", require_resource_access("project", "project:read"))

    r = await call(app, "GET", "/projects/P1")

    assert r.status_code == 403
    assert r.json() == {
        "success": False,
        "message": "Access to resource denied",
        "code": "RESOURCE_ACCESS_DENIED",
        "resourceType": "project",
        "resourceId": "P1",
        "requiredAction": "project:read",
    }
    assert calls == []
    assert oracle.calls == [(student.id, "P1")]
    warnings = _warnings(caplog)
    assert len(warnings) == 1
    assert student.id in warnings[0].getMessage()
    assert "P1" in warnings[0].getMessage()


async def test_resource_access_granted_by_oracle(build_app, call, student, make_oracle):
    oracle = make_oracle(result=True)
    app = build_app(principal=student, oracle=oracle)
    calls = _protect(app, "/projects/{id}", require_project_access("project:read"))

    r = await call(app, "GET", "/projects/P1")

    assert r.status_code == 200
    assert calls == ["/projects/{id}"]


async def test_oracle_failure_returns_500_envelope(build_app, call, student, make_oracle, caplog):
    oracle = make_oracle(error=RuntimeError("connection reset"))
    app = build_app(principal=student, oracle=oracle)
    calls = _protect(app, "/artifacts/{id}", require_artifact_access("artifact:read"))

    r = await call(app, "GET", "/artifacts/A1")

    assert r.status_code == 500
    assert r.json() == {
        "success": False,
        "message": "Error checking resource access",
        "code": "RESOURCE_CHECK_ERROR",
    }
    assert calls == []
    errors = [
        record for record in caplog.records
        if record.name.startswith("collab_rbac") and record.levelno == logging.ERROR
    ]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
    assert f"User {student.id} on artifact A1" in errors[0].getMessage()


async def test_missing_resource_id_returns_400(build_app, call, student, make_oracle, caplog):
    oracle = make_oracle()
    app = build_app(principal=student, oracle=oracle)
    calls = _protect(app, "/projects", require_resource_access("project", "project:read"))

    r = await call(app, "GET", "/projects")

    assert r.status_code == 400
    assert r.json() == {
        "success": False,
        "message": "Resource ID is required",
        "code": "RESOURCE_ID_MISSING",
    }
    assert calls == []
    assert oracle.calls == []
    assert len(_warnings(caplog)) == 1


@pytest.mark.parametrize("path,template", [
    ("/a/X/b/Y", "/a/{id}/b/{projectId}"),
    ("/c/X/d/Y", "/c/{projectId}/d/{userId}"),
    ("/e/X/f/Y", "/e/{project_id}/f/{user_id}"),
    ("/g/X", "/g/{userId}"),
])
async def test_resource_id_lookup_order(build_app, call, student, make_oracle, path, template):
    oracle = make_oracle(result=True)
    app = build_app(principal=student, oracle=oracle)
    _protect(app, template, require_resource_access("milestone", "milestone:read"))

    r = await call(app, "GET", path)

    assert r.status_code == 200
    assert oracle.calls == [(student.id, "X")]


async def test_administrator_passes_resource_check_without_oracle(build_app, call, administrator, make_oracle):
    oracle = make_oracle(error=RuntimeError("should not be called"))
    app = build_app(principal=administrator, oracle=oracle)
    _protect(app, "/projects/{id}", require_resource_access("project", "project:delete"))

    r = await call(app, "GET", "/projects/P9")

    assert r.status_code == 200
    assert oracle.calls == []


async def test_user_self_access_through_dependency(build_app, call, student, make_oracle):
    app = build_app(principal=student, oracle=make_oracle(result=False))
    _protect(app, "/users/{userId}", require_user_access("user:read"))

    assert (await call(app, "GET", f"/users/{student.id}")).status_code == 200

    r = await call(app, "GET", "/users/U-SOMEONE-ELSE")
    assert r.status_code == 403
    assert r.json()["code"] == "RESOURCE_ACCESS_DENIED"


async def test_dependencies_stack_and_stop_at_first_denial(build_app, call, student, make_oracle):
    oracle = make_oracle(result=True)
    app = build_app(principal=student, oracle=oracle)
    calls = []

    @app.get(
        "/projects/{project_id}/analytics",
        dependencies=[
            Depends(require_instructor),
            Depends(require_project_access("project:read")),
        ],
    )
    async def handler(project_id: str):
        calls.append(project_id)
        return {"ok": True}

    r = await call(app, "GET", "/projects/P1/analytics")

    assert r.status_code == 403
    assert r.json()["code"] == "ROLE_DENIED"
    assert calls == []
    assert oracle.calls == []


async def test_dependency_returns_the_principal_unchanged(build_app, call, instructor):
    app = build_app(principal=instructor)

    @app.get("/whoami")
    async def whoami(user=Depends(require_permission("project:read"))):
        return {"id": user.id, "same": user is instructor}

    r = await call(app, "GET", "/whoami")

    assert r.json() == {"id": instructor.id, "same": True}
    assert instructor.role == "instructor"
