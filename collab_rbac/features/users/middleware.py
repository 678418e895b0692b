"""
Trusted-header principal loader.

When the service sits behind an authenticating proxy, the proxy asserts the
caller's user id in a configured header. This middleware loads that user and
attaches it to ``request.state.principal``. It never rejects a request:
anything it cannot resolve, including a failed database lookup, leaves the
request anonymous, and the authorization dependencies answer AUTH_REQUIRED.
"""
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from collab_rbac.core.database.engine import AsyncSessionLocal
from collab_rbac.features.users.models import User
from collab_rbac.utils import get_logger


log = get_logger(__name__)


async def load_active_user(db: AsyncSession, user_id: str) -> Optional[User]:
    """Return the active user with ``user_id``, or None."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        log.info("Principal header names unknown user %s", user_id)
        return None
    if not user.is_active:
        log.info("Principal header names deactivated user %s", user_id)
        return None
    return user


class PrincipalMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        header_name: str,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        user_id = request.headers.get(self.header_name, "").strip()
        if user_id and getattr(request.state, "principal", None) is None:
            try:
                async with self.session_factory() as db:
                    user = await load_active_user(db, user_id)
            except Exception:
                log.exception("Failed to load principal %s; continuing anonymously", user_id)
                user = None
            if user is not None:
                request.state.principal = user
        return await call_next(request)
