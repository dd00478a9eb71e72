"""
Daily profit distributor.

Credits the daily profit of every ACTIVE purchase of a user in one
transaction, guarded by the activation gate and the per-cycle claim row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import DAILY_PROFIT_DESCRIPTION
from vipledger.models.enums import LedgerEntryType
from vipledger.models.purchase import Purchase
from vipledger.repositories.activation_claim_repository import (
    ActivationClaimRepository,
)
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.activation import (
    ActivationPolicy,
    GateReason,
    get_activation_policy,
)
from vipledger.services.base_service import BaseService
from vipledger.utils.datetime_utils import ensure_utc, utc_now
from vipledger.utils.exceptions import (
    ErrorCode,
    GateDenied,
    InvalidRate,
    NotFound,
    ValidationError,
)


@dataclass
class CreditDetail:
    """One purchase credited by an activation."""

    purchase_id: int
    package_name: str
    amount: Decimal
    entry_id: int


@dataclass
class DistributionResult:
    """Result of a per-user activation."""

    credited_total: Decimal
    details: list[CreditDetail] = field(default_factory=list)


def resolve_rate(purchase: Purchase) -> Decimal:
    """
    Daily profit rate to credit for a purchase.

    The live package rate is authoritative; the purchase snapshot is used
    only when the package no longer exists.

    Raises:
        InvalidRate: If the resolved rate is zero or negative
    """
    if purchase.package is not None:
        rate = purchase.package.daily_profit_amount
    else:
        rate = purchase.daily_profit_amount
    if rate is None or rate <= 0:
        raise InvalidRate(
            f"Purchase {purchase.id} resolved a non-positive daily profit rate: {rate}"
        )
    return rate


async def credit_purchase(
    ledger_repo: LedgerRepository,
    purchase: Purchase,
    rate: Decimal,
    now: datetime,
) -> int:
    """
    Append the DAILY_PROFIT entry of one purchase and update its counters.

    Joins the caller's transaction.

    Returns:
        Ledger entry ID
    """
    entry = await ledger_repo.append(
        purchase.user_id,
        LedgerEntryType.DAILY_PROFIT,
        rate,
        DAILY_PROFIT_DESCRIPTION.format(package=purchase.package_name),
        created_at=now,
    )
    purchase.last_credited_at = now
    purchase.total_credited = (purchase.total_credited or Decimal("0")) + rate
    purchase.daily_profit_amount = rate
    return entry.id


class ProfitDistributor(BaseService):
    """Per-user daily profit activation."""

    def __init__(
        self,
        session: AsyncSession,
        policy: ActivationPolicy | None = None,
    ) -> None:
        """
        Initialize distributor.

        Args:
            session: Async database session
            policy: Activation policy (defaults to the configured one)
        """
        super().__init__(session)
        self.policy = policy or get_activation_policy(session)
        self.user_repo = UserRepository(session)
        self.purchase_repo = PurchaseRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.claim_repo = ActivationClaimRepository(session)

    async def distribute_for_user(
        self, user_id: int, now: datetime | None = None
    ) -> DistributionResult:
        """
        Credit today's profit of every ACTIVE purchase of the user.

        Gate check and credit happen in one transaction: the claim row for
        (user, cycle) is inserted first, so concurrent activations of the
        same cycle fail on the unique constraint.

        Args:
            user_id: User ID
            now: Reference instant (defaults to now)

        Returns:
            DistributionResult with the credited total and per-purchase details

        Raises:
            GateDenied: ALREADY_ACTIVATED or TASKS_INCOMPLETE
            ValidationError: NO_ACTIVE_SUBSCRIPTIONS
            InvalidRate: A purchase resolved a non-positive rate (nothing credited)
            NotFound: Unknown user
            ConcurrencyConflict: Transient conflicts exhausted the retry budget
        """
        now = ensure_utc(now) if now else utc_now()
        result = await self.run_atomic(
            lambda: self._activate(user_id, now),
            operation_name="distribute_for_user",
        )

        self.logger.info(
            "Daily profit activated",
            extra={
                "user_id": user_id,
                "credited_total": str(result.credited_total),
                "purchases": len(result.details),
            },
        )
        return result

    async def _activate(self, user_id: int, now: datetime) -> DistributionResult:
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFound(f"User {user_id} not found")

        cycle_key = await self.policy.cycle_key(user_id, now)
        try:
            await self.claim_repo.claim(user_id, cycle_key)
        except IntegrityError as e:
            await self.session.rollback()
            decision = await self.policy.evaluate(user_id, now)
            self.logger.info(
                "Activation cycle already claimed",
                extra={"user_id": user_id, "cycle_key": cycle_key},
            )
            raise GateDenied(
                "Daily profit already activated for this cycle",
                ErrorCode.ALREADY_ACTIVATED,
                unlocks_at=decision.unlocks_at,
            ) from e

        await self.user_repo.lock(user_id)

        decision = await self.policy.evaluate(user_id, now)
        if not decision.can_activate:
            code = (
                ErrorCode.TASKS_INCOMPLETE
                if decision.reason is GateReason.TASKS_INCOMPLETE
                else ErrorCode.ALREADY_ACTIVATED
            )
            self.logger.info(
                "Activation denied by gate",
                extra={
                    "user_id": user_id,
                    "reason": decision.reason.value,
                    "tasks_completed": decision.tasks_completed,
                    "tasks_total": decision.tasks_total,
                },
            )
            raise GateDenied(
                f"Activation denied: {decision.reason.value}",
                code,
                unlocks_at=decision.unlocks_at,
            )

        purchases = await self.purchase_repo.get_active_for_user(user_id)
        if not purchases:
            raise ValidationError(
                "User has no active subscriptions",
                ErrorCode.NO_ACTIVE_SUBSCRIPTIONS,
            )

        # Resolve every rate before writing so one bad package aborts all
        rates = [(purchase, resolve_rate(purchase)) for purchase in purchases]

        result = DistributionResult(credited_total=Decimal("0"))
        for purchase, rate in rates:
            entry_id = await credit_purchase(self.ledger_repo, purchase, rate, now)
            result.credited_total += rate
            result.details.append(
                CreditDetail(
                    purchase_id=purchase.id,
                    package_name=purchase.package_name,
                    amount=rate,
                    entry_id=entry_id,
                )
            )

        await self.session.commit()
        return result
