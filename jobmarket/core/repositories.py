"""
Persistence helpers for users and job postings.

Thin wrappers over an `AsyncSession`. Lookups return None when nothing
matches; integrity problems are left to the caller to classify. Nothing
here commits.
"""

from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.job import Job
from jobmarket.models.user import User

# Primary keys are SQLite INTEGER (signed 64-bit)
MAX_ID = 2**63 - 1


def parse_id(raw: Any) -> Optional[int]:
    """Parse a primary key from untrusted input; None if it cannot name a row."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if 0 < value <= MAX_ID else None


class UserRepository:
    """Load, create and update user records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower().strip()))
        return result.scalar_one_or_none()

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        if parse_id(user_id) is None:
            return None
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, **fields: Any) -> User:
        """Insert a user and flush so the generated id is available."""
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        return user

    async def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        """Apply a partial update in one UPDATE statement and return the fresh row."""
        if fields:
            await self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()


class JobRepository:
    """Resource loader for job postings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_resource_by_id(self, job_id: int) -> Optional[Job]:
        if parse_id(job_id) is None:
            return None
        result = await self.db.execute(select(Job).where(Job.id == job_id))
        return result.scalar_one_or_none()
