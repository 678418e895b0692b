"""
Seed script to populate demo users and a project.

Run this script after database initialization to create:
- One active user per role
- A demo project owned by the instructor with the student enrolled

The printed user ids can be sent in PRINCIPAL_HEADER to try the API locally.

Usage:
    uv run python -m scripts.seed_demo
"""
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collab_rbac.core.database.engine import get_db, init_db
from collab_rbac.features.permissions.constants import Role
from collab_rbac.features.projects.models import Project
from collab_rbac.features.users.models import User
from collab_rbac.utils import configure_logging, get_logger


log = get_logger(__name__)


DEMO_USERS = [
    # (email, name, role)
    ("student@example.edu", "Demo Student", Role.STUDENT),
    ("instructor@example.edu", "Demo Instructor", Role.INSTRUCTOR),
    ("admin@example.edu", "Demo Administrator", Role.ADMINISTRATOR),
]

DEMO_PROJECT_NAME = "Demo Capstone Project"


async def seed_users(db: AsyncSession) -> dict[Role, User]:
    """
    Create demo users, skipping any that already exist.

    Returns:
        Dictionary mapping each role to its demo user
    """
    log.info("Creating demo users...")
    users_by_role: dict[Role, User] = {}

    for email, name, role in DEMO_USERS:
        result = await db.execute(select(User).where(User.email == email))
        existing = result.scalars().first()

        if existing:
            log.debug(f"User '{email}' already exists, skipping")
            users_by_role[role] = existing
            continue

        user = User(email=email, name=name, role=role.value)
        db.add(user)
        users_by_role[role] = user
        log.info(f"Created user: {email} ({role.value})")

    await db.commit()
    for user in users_by_role.values():
        await db.refresh(user)

    return users_by_role


async def seed_project(db: AsyncSession, users_by_role: dict[Role, User]) -> Project:
    """Create the demo project owned by the instructor with the student enrolled."""
    result = await db.execute(select(Project).where(Project.name == DEMO_PROJECT_NAME))
    existing = result.scalars().first()
    if existing:
        log.debug(f"Project '{DEMO_PROJECT_NAME}' already exists, skipping")
        return existing

    project = Project(
        name=DEMO_PROJECT_NAME,
        instructor_id=users_by_role[Role.INSTRUCTOR].id,
        students=[users_by_role[Role.STUDENT]],
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    log.info(f"Created project: {project.name} ({project.id})")
    return project


async def main():
    """Seed demo users and the demo project."""
    configure_logging()
    log.info("Starting demo seeding...")

    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            users_by_role = await seed_users(db)
            project = await seed_project(db, users_by_role)

            log.info("Demo seeding completed successfully!")
            for role, user in users_by_role.items():
                log.info(f"  - {role.value}: {user.id}")
            log.info(f"  - project: {project.id}")

        except Exception as e:
            log.error(f"Error seeding demo data: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
