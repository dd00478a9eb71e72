"""
Referral chain management module.

Handles the sponsor forest: downline expansion and sponsor assignment
with cycle detection.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import REFERRAL_DEPTH
from vipledger.models.user import User
from vipledger.repositories.user_repository import UserRepository
from vipledger.utils.db_decorators import with_rollback_on_error
from vipledger.utils.exceptions import ErrorCode, NotFound, ValidationError


class ReferralChainManager:
    """Manages sponsor chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_downline_levels(
        self, user_id: int, depth: int = REFERRAL_DEPTH
    ) -> list[list[int]]:
        """
        Breadth-first expansion of the downline.

        A user reached at a shallower level (or the root itself) is never
        repeated at a deeper level, so malformed data cannot loop.

        Args:
            user_id: Root user ID
            depth: Number of levels to expand

        Returns:
            One list of user IDs per level (level 1 first), always depth long
        """
        visited = {user_id}
        frontier = [user_id]
        levels: list[list[int]] = []

        for _ in range(depth):
            members = [
                member_id
                for member_id in await self.user_repo.get_sponsored_ids(frontier)
                if member_id not in visited
            ]
            visited.update(members)
            levels.append(members)
            frontier = members

        return levels

    async def network_size(self, user_id: int) -> int:
        """Size of the whole downline, any depth."""
        visited = {user_id}
        frontier = [user_id]
        size = 0

        while frontier:
            members = [
                member_id
                for member_id in await self.user_repo.get_sponsored_ids(frontier)
                if member_id not in visited
            ]
            visited.update(members)
            size += len(members)
            frontier = members

        return size

    async def direct_referrals(self, user_id: int) -> list[User]:
        """Users sponsored directly by user_id, oldest first."""
        return await self.user_repo.find_by(sponsor_id=user_id)

    async def get_upline(self, user_id: int) -> list[int]:
        """
        Sponsor chain above a user, direct sponsor first.

        Stops at a root or at the first repeated ID.
        """
        chain: list[int] = []
        seen = {user_id}
        sponsor_id = await self.user_repo.get_sponsor_id(user_id)

        while sponsor_id is not None and sponsor_id not in seen:
            chain.append(sponsor_id)
            seen.add(sponsor_id)
            sponsor_id = await self.user_repo.get_sponsor_id(sponsor_id)

        return chain

    async def validate_sponsor(self, user_id: int | None, sponsor_id: int) -> None:
        """
        Check that sponsor_id may sponsor user_id.

        Args:
            user_id: Sponsored user (None for a user not created yet)
            sponsor_id: Proposed sponsor

        Raises:
            NotFound: If the sponsor does not exist
            ValidationError: INVALID_SPONSOR on self-sponsorship or a cycle
        """
        if user_id is not None and user_id == sponsor_id:
            raise ValidationError(
                "A user cannot sponsor themselves", ErrorCode.INVALID_SPONSOR
            )

        if await self.user_repo.get_by_id(sponsor_id) is None:
            raise NotFound(f"Sponsor {sponsor_id} not found")

        if user_id is None:
            return

        upline = await self.get_upline(sponsor_id)
        if user_id in upline:
            logger.warning(
                "Referral loop detected",
                extra={
                    "user_id": user_id,
                    "sponsor_id": sponsor_id,
                    "chain_ids": upline,
                },
            )
            raise ValidationError(
                "Sponsor assignment would create a cycle",
                ErrorCode.INVALID_SPONSOR,
            )

    @with_rollback_on_error
    async def assign_sponsor(self, user_id: int, sponsor_id: int | None) -> User:
        """
        Set or clear the sponsor of a user and commit.

        Args:
            user_id: User ID
            sponsor_id: New sponsor (None detaches the user)

        Returns:
            Updated user

        Raises:
            NotFound: Unknown user or sponsor
            ValidationError: INVALID_SPONSOR on self-sponsorship or a cycle
        """
        await self.user_repo.lock_sponsor_forest()
        user = await self.user_repo.lock(user_id)
        if user is None:
            raise NotFound(f"User {user_id} not found")

        # Upline is read under both locks
        if sponsor_id is not None:
            await self.validate_sponsor(user_id, sponsor_id)

        user.sponsor_id = sponsor_id
        await self.session.commit()

        logger.info(
            "Sponsor assigned",
            extra={"user_id": user_id, "sponsor_id": sponsor_id},
        )
        return user
