"""
Referral bonus engine.

Computes the 3-level bonus breakdown from ACTIVE purchases of the
downline and credits it through an explicit operation.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import REFERRAL_BONUS_DESCRIPTION, REFERRAL_LEVELS
from vipledger.models.enums import LedgerEntryType
from vipledger.models.user import User
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.repositories.referral_rule_repository import ReferralRuleRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.base_service import BaseService
from vipledger.services.referral.chain_manager import ReferralChainManager
from vipledger.utils.exceptions import NotFound


AMOUNT_QUANTUM = Decimal("0.00000001")


@dataclass
class ReferralBreakdown:
    """Bonus per level of the downline and the total."""

    levels: dict[int, Decimal]
    total: Decimal
    members: dict[int, int] = field(default_factory=dict)


@dataclass
class ReferralCreditResult:
    """Outcome of crediting the referral bonus."""

    credited_amount: Decimal
    total_bonus: Decimal
    previously_credited: Decimal
    entry_id: int | None = None


@dataclass
class BonusRule:
    """Commission percentage of one level."""

    level: int
    percentage: Decimal


class ReferralBonusEngine(BaseService):
    """3-level referral bonus calculator."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize bonus engine."""
        super().__init__(session)
        self.chain_manager = ReferralChainManager(session)
        self.rule_repo = ReferralRuleRepository(session)
        self.purchase_repo = PurchaseRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.user_repo = UserRepository(session)

    async def bonus_rules(self) -> list[BonusRule]:
        """Percentages for levels 1-3 (0 where no rule is configured)."""
        percentages = await self.rule_repo.get_percentages()
        return [
            BonusRule(level=level, percentage=percentages.get(level, Decimal("0")))
            for level in REFERRAL_LEVELS
        ]

    async def compute_bonus_breakdown(self, user_id: int) -> ReferralBreakdown:
        """
        Bonus the user earns from each downline level.

        Side-effect free. Each level sums investment_amount of ACTIVE
        purchases of its members times percentage / 100.

        Args:
            user_id: Root user ID

        Returns:
            ReferralBreakdown (all zeros for an empty downline)
        """
        percentages = await self.rule_repo.get_percentages()
        downline = await self.chain_manager.get_downline_levels(
            user_id, len(REFERRAL_LEVELS)
        )

        levels: dict[int, Decimal] = {}
        members: dict[int, int] = {}
        for level, member_ids in zip(REFERRAL_LEVELS, downline, strict=True):
            members[level] = len(member_ids)
            percentage = percentages.get(level, Decimal("0"))
            if not percentage or not member_ids:
                levels[level] = Decimal("0")
                continue
            base = await self.purchase_repo.sum_active_investment(member_ids)
            levels[level] = (base * percentage / Decimal("100")).quantize(
                AMOUNT_QUANTUM
            )

        total = sum(levels.values(), Decimal("0"))
        self.logger.debug(
            "Referral breakdown computed",
            extra={"user_id": user_id, "total": str(total), "members": members},
        )
        return ReferralBreakdown(levels=levels, total=total, members=members)

    async def credit_referral_bonus(self, user_id: int) -> ReferralCreditResult:
        """
        Credit the part of the referral bonus not yet in the ledger.

        Rerunning is idempotent: only a positive difference between the
        computed total and the REFERRAL_BONUS already credited is posted.

        Args:
            user_id: User ID

        Returns:
            ReferralCreditResult

        Raises:
            NotFound: Unknown user
            ConcurrencyConflict: Transient conflicts exhausted the retry budget
        """
        result = await self.run_atomic(
            lambda: self._credit(user_id),
            operation_name="credit_referral_bonus",
        )
        if result.entry_id is not None:
            self.logger.info(
                "Referral bonus credited",
                extra={
                    "user_id": user_id,
                    "amount": str(result.credited_amount),
                    "entry_id": result.entry_id,
                },
            )
        return result

    async def _credit(self, user_id: int) -> ReferralCreditResult:
        if await self.user_repo.lock(user_id) is None:
            raise NotFound(f"User {user_id} not found")

        breakdown = await self.compute_bonus_breakdown(user_id)
        already = await self.ledger_repo.sum_by_type(
            user_id, LedgerEntryType.REFERRAL_BONUS
        )
        delta = (breakdown.total - already).quantize(AMOUNT_QUANTUM)

        result = ReferralCreditResult(
            credited_amount=Decimal("0"),
            total_bonus=breakdown.total,
            previously_credited=already,
        )
        if delta > 0:
            entry = await self.ledger_repo.append(
                user_id,
                LedgerEntryType.REFERRAL_BONUS,
                delta,
                REFERRAL_BONUS_DESCRIPTION,
            )
            result.credited_amount = delta
            result.entry_id = entry.id

        await self.session.commit()
        return result

    async def network_size(self, user_id: int) -> int:
        """Whole downline size."""
        return await self.chain_manager.network_size(user_id)

    async def direct_referrals(self, user_id: int) -> list[User]:
        """Users sponsored directly by user_id."""
        return await self.chain_manager.direct_referrals(user_id)
