"""
Session store: the persisted refresh tokens of each user.

Every mutation is a single INSERT or DELETE statement, so concurrent
requests touching the same user's sessions are serialized by the
database instead of racing through a read-modify-write in Python.

The store never commits; the caller owns the transaction.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.user import SessionRecord, utc_now


class SessionStore:
    """Add, remove, prune and look up a user's session records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, user_id: int, token: str, expires_at: datetime) -> SessionRecord:
        """Record a newly issued refresh token."""
        record = SessionRecord(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(record)
        await self.db.flush()
        return record

    async def remove(self, user_id: int, token: str) -> bool:
        """
        Delete the record matching `token` exactly.

        Removing a token that is not present is not an error.

        Returns:
            True if a record was deleted
        """
        result = await self.db.execute(
            delete(SessionRecord)
            .where(SessionRecord.user_id == user_id, SessionRecord.token == token)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def remove_all(self, user_id: int) -> int:
        """Delete every session of the user. Returns the number removed."""
        result = await self.db.execute(
            delete(SessionRecord)
            .where(SessionRecord.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def prune_expired(self, user_id: int, now: Optional[datetime] = None) -> int:
        """Delete the user's sessions whose expiry has passed."""
        now = now or utc_now()
        result = await self.db.execute(
            delete(SessionRecord)
            .where(SessionRecord.user_id == user_id, SessionRecord.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def evict_oldest(self, user_id: int, keep: int) -> int:
        """Delete all but the `keep` most recently issued sessions."""
        newest = (
            select(SessionRecord.id)
            .where(SessionRecord.user_id == user_id)
            .order_by(SessionRecord.id.desc())
            .limit(keep)
        )
        result = await self.db.execute(
            delete(SessionRecord)
            .where(SessionRecord.user_id == user_id, SessionRecord.id.not_in(newest))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def contains(self, user_id: int, token: str) -> bool:
        """Whether `token` was issued to this user and has not been revoked."""
        result = await self.db.execute(
            select(
                exists().where(
                    SessionRecord.user_id == user_id,
                    SessionRecord.token == token,
                )
            )
        )
        return bool(result.scalar())

    async def list(self, user_id: int) -> List[SessionRecord]:
        """The user's sessions in issue order."""
        result = await self.db.execute(
            select(SessionRecord)
            .where(SessionRecord.user_id == user_id)
            .order_by(SessionRecord.id)
        )
        return list(result.scalars().all())
