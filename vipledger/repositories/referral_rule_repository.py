"""
Referral bonus rule repository.

Read access to the per-level commission configuration.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import REFERRAL_DEPTH
from vipledger.models.referral_bonus_rule import ReferralBonusRule
from vipledger.repositories.base import BaseRepository, as_decimal


class ReferralRuleRepository(BaseRepository[ReferralBonusRule]):
    """Referral bonus rule repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rule repository."""
        super().__init__(ReferralBonusRule, session)

    async def get_rules(self) -> list[ReferralBonusRule]:
        """Rules for levels 1..REFERRAL_DEPTH ordered by level."""
        stmt = (
            select(ReferralBonusRule)
            .where(ReferralBonusRule.level <= REFERRAL_DEPTH)
            .order_by(ReferralBonusRule.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_percentages(self) -> dict[int, Decimal]:
        """Mapping level -> percentage (missing levels are absent)."""
        return {rule.level: as_decimal(rule.percentage) for rule in await self.get_rules()}
