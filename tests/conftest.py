"""
Pytest configuration and shared fixtures.

Apps under test attach principals through a tiny middleware and replace the
database-backed ownership oracle with a stub that records its calls.
"""
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from collab_rbac.core.database.base import Base
from collab_rbac.features.permissions.errors import register_exception_handlers
from collab_rbac.features.permissions.ownership import get_ownership_oracle
from collab_rbac.features.projects.models import Project
from collab_rbac.features.users.models import User


@pytest.fixture
def anyio_backend():
    return "asyncio"


@dataclass
class FakePrincipal:
    id: str
    role: str
    is_active: bool = True


class StubOracle:
    """Ownership oracle returning a fixed answer (or raising) and recording every call."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def can_access_resource_instance(self, principal, resource_id: str) -> bool:
        self.calls.append((principal.id, resource_id))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def student() -> FakePrincipal:
    return FakePrincipal(id="U-STUDENT", role="student")


@pytest.fixture
def instructor() -> FakePrincipal:
    return FakePrincipal(id="U-INSTRUCTOR", role="instructor")


@pytest.fixture
def administrator() -> FakePrincipal:
    return FakePrincipal(id="U-ADMIN", role="administrator")


@pytest.fixture
def make_principal() -> Callable[..., FakePrincipal]:
    return FakePrincipal


@pytest.fixture
def make_oracle() -> Callable[..., StubOracle]:
    return StubOracle


@pytest.fixture
def build_app() -> Callable[..., FastAPI]:
    """Factory for a bare app with the error envelope handler, a principal and a stub oracle."""

    def _build(principal=None, oracle=None) -> FastAPI:
        app = FastAPI()
        register_exception_handlers(app)

        @app.middleware("http")
        async def attach_principal(request, call_next):
            if principal is not None:
                request.state.principal = principal
            return await call_next(request)

        stub = oracle if oracle is not None else StubOracle()
        app.dependency_overrides[get_ownership_oracle] = lambda: stub
        return app

    return _build


@pytest.fixture
def call() -> Callable:
    """Send one request to an app in-process."""

    async def _call(app: FastAPI, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            return await client.request(method, path, **kwargs)

    return _call


@pytest.fixture
async def session_factory():
    """In-memory database seeded with one user per role, a stranger and two projects."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as db:
        student = User(id="U-STUDENT", email="student@example.edu", name="Student", role="student")
        other_student = User(id="U-OTHER", email="other@example.edu", name="Other", role="student")
        instructor = User(id="U-INSTRUCTOR", email="teach@example.edu", name="Instructor", role="instructor")
        other_instructor = User(id="U-INSTRUCTOR-2", email="teach2@example.edu", name="Instructor 2", role="instructor")
        admin = User(id="U-ADMIN", email="admin@example.edu", name="Admin", role="administrator")
        inactive = User(id="U-INACTIVE", email="gone@example.edu", name="Gone", role="student", is_active=False)
        db.add_all([student, other_student, instructor, other_instructor, admin, inactive])
        await db.flush()

        db.add_all([
            Project(id="P1", name="Capstone", instructor_id=instructor.id, students=[student]),
            Project(id="P2", name="Elsewhere", instructor_id=other_instructor.id, students=[other_student]),
        ])
        await db.commit()

    yield factory
    await engine.dispose()
