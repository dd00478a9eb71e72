"""
Roulette service.

One-shot prize per eligible purchase. The client only sends the index of
the slot it landed on; values come from the server side prize table.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import ROULETTE_DESCRIPTION, ROULETTE_PRIZES, Prize
from vipledger.config.settings import settings
from vipledger.models.enums import LedgerEntryType
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.services.base_service import BaseService
from vipledger.utils.datetime_utils import ensure_utc, utc_now
from vipledger.utils.exceptions import ErrorCode, ValidationError


@dataclass
class SpinResult:
    """Outcome of a successful spin."""

    credited_amount: Decimal
    package_name: str
    purchase_id: int
    entry_id: int
    remaining_spins: int


@dataclass
class EligiblePurchase:
    """Purchase with an unspent spin."""

    purchase_id: int
    package_name: str
    investment_amount: Decimal


@dataclass
class SpinHistoryItem:
    """Previously consumed spin."""

    purchase_id: int
    package_name: str
    prize: Decimal
    spent_at: datetime | None


@dataclass
class RouletteEligibility:
    """Spins available to a user."""

    spins_available: int
    min_investment: Decimal
    total_winnings: Decimal
    eligible: list[EligiblePurchase] = field(default_factory=list)
    history: list[SpinHistoryItem] = field(default_factory=list)


def resolve_prize(prize_index: int) -> Prize:
    """
    Look up a prize slot.

    Raises:
        ValidationError: INVALID_PRIZE out of range, BLOCKED_PRIZE if the
            slot cannot be won
    """
    if not isinstance(prize_index, int) or not 0 <= prize_index < len(ROULETTE_PRIZES):
        raise ValidationError(
            f"Invalid prize index: {prize_index}", ErrorCode.INVALID_PRIZE
        )
    prize = ROULETTE_PRIZES[prize_index]
    if prize.blocked:
        raise ValidationError(
            f"Prize {prize.label} cannot be won", ErrorCode.BLOCKED_PRIZE
        )
    return prize


class RouletteService(BaseService):
    """One-shot roulette prize redemption."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize roulette service."""
        super().__init__(session)
        self.purchase_repo = PurchaseRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.min_investment = Decimal(settings.roulette_min_investment)

    async def spin(
        self,
        user_id: int,
        prize_index: int,
        purchase_id: int | None = None,
        now: datetime | None = None,
    ) -> SpinResult:
        """
        Redeem the spin of an eligible purchase.

        Without purchase_id the highest-investment eligible purchase is used.
        Flag, prize and ROULETTE_WIN entry commit together.

        Args:
            user_id: User ID
            prize_index: Slot index in the prize table
            purchase_id: Purchase whose spin to consume
            now: Spin instant (defaults to now)

        Returns:
            SpinResult

        Raises:
            ValidationError: INVALID_PRIZE, BLOCKED_PRIZE or NOT_ELIGIBLE
        """
        prize = resolve_prize(prize_index)
        now = ensure_utc(now) if now else utc_now()

        result = await self.run_atomic(
            lambda: self._redeem(user_id, prize, purchase_id, now),
            operation_name="roulette_spin",
        )
        self.logger.info(
            "Roulette prize credited",
            extra={
                "user_id": user_id,
                "purchase_id": result.purchase_id,
                "prize": str(result.credited_amount),
            },
        )
        return result

    async def _redeem(
        self,
        user_id: int,
        prize: Prize,
        purchase_id: int | None,
        now: datetime,
    ) -> SpinResult:
        eligible = await self.purchase_repo.get_roulette_eligible(
            user_id, self.min_investment, purchase_id
        )
        if not eligible:
            raise ValidationError(
                "No eligible purchase for a spin", ErrorCode.NOT_ELIGIBLE
            )
        purchase = eligible[0]

        if not await self.purchase_repo.consume_roulette(purchase.id, prize.value, now):
            raise ValidationError(
                "Spin already used for this purchase", ErrorCode.NOT_ELIGIBLE
            )

        package_name = purchase.package_name
        entry = await self.ledger_repo.append(
            user_id,
            LedgerEntryType.ROULETTE_WIN,
            prize.value,
            ROULETTE_DESCRIPTION.format(package=package_name),
            created_at=now,
        )
        remaining = await self._count_eligible(user_id)
        await self.session.commit()

        return SpinResult(
            credited_amount=prize.value,
            package_name=package_name,
            purchase_id=purchase.id,
            entry_id=entry.id,
            remaining_spins=remaining,
        )

    async def _count_eligible(self, user_id: int) -> int:
        return len(
            await self.purchase_repo.get_roulette_eligible(user_id, self.min_investment)
        )

    async def eligibility(self, user_id: int) -> RouletteEligibility:
        """
        Spins available, eligible purchases and past wins of a user.

        Args:
            user_id: User ID

        Returns:
            RouletteEligibility
        """
        eligible = await self.purchase_repo.get_roulette_eligible(
            user_id, self.min_investment
        )
        spent = await self.purchase_repo.get_roulette_history(user_id)
        return RouletteEligibility(
            spins_available=len(eligible),
            min_investment=self.min_investment,
            total_winnings=await self.ledger_repo.sum_by_type(
                user_id, LedgerEntryType.ROULETTE_WIN
            ),
            eligible=[
                EligiblePurchase(
                    purchase_id=purchase.id,
                    package_name=purchase.package_name,
                    investment_amount=purchase.investment_amount,
                )
                for purchase in eligible
            ],
            history=[
                SpinHistoryItem(
                    purchase_id=purchase.id,
                    package_name=purchase.package_name,
                    prize=purchase.roulette_prize or Decimal("0"),
                    spent_at=(
                        ensure_utc(purchase.roulette_spent_at)
                        if purchase.roulette_spent_at
                        else None
                    ),
                )
                for purchase in spent
            ],
        )
