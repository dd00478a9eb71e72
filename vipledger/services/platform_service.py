"""
Platform service.

Facade used by the routing layer. Every amount is a Decimal; failures are
raised as LedgerError subclasses carrying an ErrorCode.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.enums import LedgerEntryType
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.services.activation import (
    ActivationPolicy,
    GateReason,
    get_activation_policy,
)
from vipledger.services.base_service import BaseService
from vipledger.services.ledger_service import EarningsBreakdown, LedgerService
from vipledger.services.profit import (
    BulkProfitRunner,
    BulkRunResult,
    DistributionResult,
    ProfitDistributor,
)
from vipledger.services.referral import ReferralBonusEngine, ReferralBreakdown
from vipledger.services.roulette_service import RouletteService, SpinResult
from vipledger.utils.datetime_utils import ensure_utc, utc_now


@dataclass
class ActivationStatus:
    """What the dashboard shows next to the activation button."""

    can_activate: bool
    reason: GateReason
    unlocks_at: datetime | None
    tasks_completed: int
    tasks_total: int
    active_packages: list[str] = field(default_factory=list)
    last_activation: datetime | None = None


class PlatformService(BaseService):
    """Entry point of the crediting core."""

    def __init__(
        self,
        session: AsyncSession,
        policy: ActivationPolicy | None = None,
    ) -> None:
        """
        Initialize platform service.

        Args:
            session: Async database session
            policy: Activation policy (defaults to the configured one)
        """
        super().__init__(session)
        self.policy = policy or get_activation_policy(session)
        self.ledger = LedgerService(session)
        self.distributor = ProfitDistributor(session, self.policy)
        self.bulk_runner = BulkProfitRunner(session)
        self.referrals = ReferralBonusEngine(session)
        self.roulette = RouletteService(session)
        self.purchase_repo = PurchaseRepository(session)

    async def activation_status(
        self, user_id: int, now: datetime | None = None
    ) -> ActivationStatus:
        """
        Gate decision plus the user's active packages and last activation.

        Args:
            user_id: User ID
            now: Reference instant (defaults to now)

        Returns:
            ActivationStatus
        """
        now = ensure_utc(now) if now else utc_now()
        decision = await self.policy.evaluate(user_id, now)
        purchases = await self.purchase_repo.get_active_for_user(user_id)
        last_entry = await self.ledger.latest_entry(
            user_id, LedgerEntryType.DAILY_PROFIT
        )
        return ActivationStatus(
            can_activate=decision.can_activate,
            reason=decision.reason,
            unlocks_at=decision.unlocks_at,
            tasks_completed=decision.tasks_completed,
            tasks_total=decision.tasks_total,
            active_packages=[purchase.package_name for purchase in purchases],
            last_activation=ensure_utc(last_entry.created_at) if last_entry else None,
        )

    async def activate_profit(
        self, user_id: int, now: datetime | None = None
    ) -> DistributionResult:
        """Credit today's profit (ALREADY_ACTIVATED, TASKS_INCOMPLETE,
        NO_ACTIVE_SUBSCRIPTIONS or INVALID_RATE on failure)."""
        return await self.distributor.distribute_for_user(user_id, now)

    async def run_bulk_profit(self, now: datetime | None = None) -> BulkRunResult:
        """Administrative bulk run (LOCKED with unlocks_at when blocked)."""
        return await self.bulk_runner.distribute_bulk_admin(now)

    async def wallet_balance(self, user_id: int) -> Decimal:
        """Current balance."""
        return await self.ledger.balance(user_id)

    async def earnings_breakdown(self, user_id: int) -> EarningsBreakdown:
        """Totals per ledger cause."""
        return await self.ledger.earnings_breakdown(user_id)

    async def referral_breakdown(self, user_id: int) -> ReferralBreakdown:
        """Read-only referral bonus per level."""
        return await self.referrals.compute_bonus_breakdown(user_id)

    async def spin_prize(
        self,
        user_id: int,
        purchase_id: int | None,
        prize_index: int,
        now: datetime | None = None,
    ) -> SpinResult:
        """Redeem a roulette spin (NOT_ELIGIBLE, BLOCKED_PRIZE or INVALID_PRIZE)."""
        return await self.roulette.spin(user_id, prize_index, purchase_id, now)
