"""
Ledger service.

Append-only wallet ledger: the only writer of WalletLedgerEntry and the
source of every balance and earnings figure.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.enums import LedgerEntryType
from vipledger.models.wallet_ledger import WalletLedgerEntry
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.base_service import BaseService, transaction
from vipledger.utils.datetime_utils import ensure_utc, utc_now
from vipledger.utils.exceptions import ErrorCode, NotFound, ValidationError


@dataclass
class EarningsBreakdown:
    """Per-cause totals of a user's ledger. total equals the balance."""

    daily_profit: Decimal
    referral_bonus: Decimal
    adjustments: Decimal
    roulette: Decimal
    total: Decimal


@dataclass
class DailyEarning:
    """DAILY_PROFIT credited on one local calendar day."""

    day: date
    amount: Decimal


@dataclass
class AdjustmentItem:
    """Manual adjustment as shown to the user."""

    id: int
    amount: Decimal
    kind: str
    description: str | None
    created_at: datetime


class LedgerService(BaseService):
    """
    Ledger store.

    append() joins the caller's transaction; it never commits and never
    retries. There is deliberately no update or delete operation.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger service."""
        super().__init__(session)
        self.ledger_repo = LedgerRepository(session)
        self.user_repo = UserRepository(session)

    async def append(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        amount: Decimal,
        description: str | None = None,
        created_at: datetime | None = None,
    ) -> int:
        """
        Append an entry to the caller's transaction.

        Args:
            user_id: Owner of the entry
            entry_type: Cause of the entry
            amount: Signed amount
            description: Human readable description
            created_at: Entry timestamp (defaults to now)

        Returns:
            ID of the new entry
        """
        entry = await self.ledger_repo.append(
            user_id, entry_type, amount, description, created_at
        )
        self.logger.debug(
            "Ledger entry appended",
            extra={
                "entry_id": entry.id,
                "user_id": user_id,
                "type": entry_type.value,
                "amount": str(amount),
            },
        )
        return entry.id

    async def balance(self, user_id: int) -> Decimal:
        """Current balance: sum of all entries of the user."""
        return await self.ledger_repo.balance(user_id)

    async def sum_by_type(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        since: datetime | None = None,
    ) -> Decimal:
        """Sum of the user's entries of one type, optionally since an instant."""
        return await self.ledger_repo.sum_by_type(user_id, entry_type, since)

    async def latest(
        self, user_id: int, entry_type: LedgerEntryType
    ) -> int | None:
        """ID of the user's most recent entry of a type."""
        entry = await self.ledger_repo.latest_entry(user_id, entry_type)
        return entry.id if entry else None

    async def latest_entry(
        self, user_id: int, entry_type: LedgerEntryType
    ) -> WalletLedgerEntry | None:
        """Most recent entry of a type."""
        return await self.ledger_repo.latest_entry(user_id, entry_type)

    async def history(
        self,
        user_id: int,
        limit: int = 50,
        offset: int = 0,
        entry_type: LedgerEntryType | None = None,
    ) -> list[WalletLedgerEntry]:
        """
        User ledger, newest first.

        Args:
            user_id: User ID
            limit: Page size
            offset: Entries to skip
            entry_type: Restrict to one cause

        Returns:
            Ledger entries
        """
        if limit <= 0 or offset < 0:
            raise ValidationError(
                "limit must be positive and offset non-negative",
                ErrorCode.INVALID_INPUT,
            )
        return await self.ledger_repo.history(user_id, limit, offset, entry_type)

    async def earnings_breakdown(self, user_id: int) -> EarningsBreakdown:
        """
        Totals per cause.

        Computed from one grouped query, so total always equals the balance.
        """
        sums = await self.ledger_repo.sums_grouped_by_type(user_id)
        zero = Decimal("0")
        breakdown = EarningsBreakdown(
            daily_profit=sums.get(LedgerEntryType.DAILY_PROFIT.value, zero),
            referral_bonus=sums.get(LedgerEntryType.REFERRAL_BONUS.value, zero),
            adjustments=sums.get(LedgerEntryType.ADJUSTMENT.value, zero),
            roulette=sums.get(LedgerEntryType.ROULETTE_WIN.value, zero),
            total=zero,
        )
        breakdown.total = (
            breakdown.daily_profit
            + breakdown.referral_bonus
            + breakdown.adjustments
            + breakdown.roulette
        )
        return breakdown

    async def earnings_history(
        self,
        user_id: int,
        days: int = 7,
        now: datetime | None = None,
    ) -> list[DailyEarning]:
        """
        DAILY_PROFIT per local calendar day for the last days, oldest first.

        Days without profit are reported with a zero amount.

        Args:
            user_id: User ID
            days: Number of days including today
            now: Reference instant (defaults to now)

        Returns:
            One DailyEarning per day
        """
        if days <= 0:
            raise ValidationError("days must be positive", ErrorCode.INVALID_INPUT)

        tz = settings.tzinfo
        now = ensure_utc(now) if now else utc_now()
        today = now.astimezone(tz).date()
        first_day = today - timedelta(days=days - 1)
        since = datetime.combine(first_day, time(0), tzinfo=tz)

        totals = {first_day + timedelta(days=i): Decimal("0") for i in range(days)}
        entries = await self.ledger_repo.entries_since(
            user_id, LedgerEntryType.DAILY_PROFIT, since
        )
        for entry in entries:
            day = ensure_utc(entry.created_at).astimezone(tz).date()
            if day in totals:
                totals[day] += entry.amount

        return [DailyEarning(day=day, amount=amount) for day, amount in totals.items()]

    async def adjustments(
        self, user_id: int, limit: int = 50, offset: int = 0
    ) -> list[AdjustmentItem]:
        """
        Manual adjustments, newest first, classified as credit or debit.

        Paged like history.

        Raises:
            ValidationError: INVALID_INPUT on a bad limit or offset
        """
        entries = await self.history(
            user_id, limit, offset, entry_type=LedgerEntryType.ADJUSTMENT
        )
        return [
            AdjustmentItem(
                id=entry.id,
                amount=entry.amount,
                kind="credit" if entry.amount > 0 else "debit",
                description=entry.description,
                created_at=ensure_utc(entry.created_at),
            )
            for entry in entries
        ]

    @transaction
    async def record_adjustment(
        self,
        user_id: int,
        amount: Decimal,
        description: str | None = None,
    ) -> int:
        """
        Post a manual correction and commit it.

        Args:
            user_id: User ID
            amount: Signed amount (negative for a debit)
            description: Reason shown to the user

        Returns:
            ID of the ADJUSTMENT entry

        Raises:
            ValidationError: If amount is zero
            NotFound: If the user does not exist
        """
        if amount == 0:
            raise ValidationError(
                "Adjustment amount must be non-zero", ErrorCode.INVALID_INPUT
            )
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFound(f"User {user_id} not found")

        entry_id = await self.append(
            user_id, LedgerEntryType.ADJUSTMENT, amount, description
        )
        self.logger.info(
            "Adjustment recorded",
            extra={"user_id": user_id, "entry_id": entry_id, "amount": str(amount)},
        )
        return entry_id
