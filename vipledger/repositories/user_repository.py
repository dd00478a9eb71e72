"""
User repository.

Data access layer for User model and the sponsor forest.
"""

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import SPONSOR_FOREST_LOCK_KEY
from vipledger.models.user import User
from vipledger.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with sponsor tree queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        return await self.get_by(username=username)

    async def lock(self, user_id: int) -> User | None:
        """Lock the user row; serialises crediting operations of one user."""
        return await self.get_for_update(user_id)

    async def lock_sponsor_forest(self) -> None:
        """
        Serialise sponsor changes until the end of the transaction.

        Row locks on the moving user do not stop two opposite reassignments
        from each passing the cycle check, so every change takes one
        forest-wide advisory lock. On SQLite the write lock taken by the
        following row lock already admits one writer at a time.
        """
        if self.is_sqlite():
            return
        await self.session.execute(
            select(func.pg_advisory_xact_lock(SPONSOR_FOREST_LOCK_KEY))
        )

    async def get_sponsor_id(self, user_id: int) -> int | None:
        """Sponsor of a user (None for roots and unknown users)."""
        stmt = select(User.sponsor_id).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_sponsored_ids(self, sponsor_ids: Iterable[int]) -> list[int]:
        """
        IDs of users directly sponsored by any of the given users.

        Args:
            sponsor_ids: Sponsor user IDs

        Returns:
            Sponsored user IDs (empty if sponsor_ids is empty)
        """
        ids = list(sponsor_ids)
        if not ids:
            return []
        stmt = select(User.id).where(User.sponsor_id.in_(ids)).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
