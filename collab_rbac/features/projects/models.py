"""
Project model and its student roster.

Projects are the unit of instance-level scoping: personas, conversations,
milestones and artifacts are all reachable by anyone who can reach the project.
"""
from datetime import datetime
from sqlalchemy import String, ForeignKey, Table, Column, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_rbac.core.database.base import Base, TimestampMixin, generate_ulid
from collab_rbac.features.users.models import User


# Association table for the many-to-many relationship between projects and enrolled students
project_students = Table(
    "project_students",
    Base.metadata,
    Column("project_id", String(26), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("joined_at", DateTime(timezone=True), nullable=False, default=datetime.now),
)


class Project(Base, TimestampMixin):
    """A team project owned by one instructor and worked on by enrolled students."""
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    instructor_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    instructor: Mapped[User] = relationship(
        User,
        foreign_keys=[instructor_id],
        lazy="selectin"
    )

    students: Mapped[list[User]] = relationship(
        User,
        secondary=project_students,
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name!r}, instructor_id={self.instructor_id})>"
