"""
User model with ULID primary keys.

Rows are loaded by the principal middleware and satisfy the ``Principal``
protocol (id, role, is_active).
"""
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from collab_rbac.core.database.base import Base, TimestampMixin, generate_ulid
from collab_rbac.features.permissions.constants import Role


class User(Base, TimestampMixin):
    """
    Platform user. Authentication happens upstream; this table only records
    who a user is and which role they hold.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # One of Role's values; stored as plain text so unknown roles fail closed instead of failing to load
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.STUDENT.value, index=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role})>"
