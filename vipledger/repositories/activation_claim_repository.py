"""
Activation claim repository.

Inserts the per-user-per-cycle marker row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.activation_claim import ActivationClaim
from vipledger.repositories.base import BaseRepository
from vipledger.utils.datetime_utils import utc_now


class ActivationClaimRepository(BaseRepository[ActivationClaim]):
    """Activation claim repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize claim repository."""
        super().__init__(ActivationClaim, session)

    async def claim(self, user_id: int, cycle_key: str) -> ActivationClaim:
        """
        Insert the claim for (user_id, cycle_key) and flush.

        Raises:
            IntegrityError: If the cycle was already claimed by a committed
                or concurrent transaction
        """
        claim = ActivationClaim(
            user_id=user_id, cycle_key=cycle_key, created_at=utc_now()
        )
        self.session.add(claim)
        await self.session.flush()
        return claim
