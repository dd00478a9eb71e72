"""
Daily profit history report.

Admin overview of who activated the daily profit in the current window.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.enums import LedgerEntryType
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.base_service import BaseService
from vipledger.utils.datetime_utils import (
    ensure_utc,
    next_unlock_after,
    unlock_window_start,
    utc_now,
)


@dataclass
class PackageRate:
    """Active package of a user with its live rate."""

    purchase_id: int
    package_name: str
    daily_profit_amount: Decimal


@dataclass
class UserProfitRow:
    """One user's activity in the current window."""

    user_id: int
    username: str
    activated_today: bool
    first_activation_at: datetime | None
    profit_today: Decimal
    balance_before: Decimal
    balance_after: Decimal
    lifetime_profit: Decimal
    packages: list[PackageRate] = field(default_factory=list)


@dataclass
class ProfitHistorySummary:
    """Totals over every user with a VIP package."""

    total_users_with_vip: int
    activated_today: int
    not_activated_today: int
    total_profit_today: Decimal


@dataclass
class DailyProfitHistory:
    """Daily profit report for the window containing the reference instant."""

    day_start: datetime
    next_reset: datetime
    users: list[UserProfitRow]
    summary: ProfitHistorySummary


class DailyProfitReportService(BaseService):
    """Read-only admin report over the ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize report service."""
        super().__init__(session)
        self.purchase_repo = PurchaseRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.user_repo = UserRepository(session)

    async def daily_profit_history(
        self, now: datetime | None = None
    ) -> DailyProfitHistory:
        """
        Build the report for the window containing now.

        Users who activated come first, then by username.

        Args:
            now: Reference instant (defaults to now)

        Returns:
            DailyProfitHistory
        """
        now = ensure_utc(now) if now else utc_now()
        tz = settings.tzinfo
        day_start = unlock_window_start(now, settings.profit_unlock_hour, tz)
        next_reset = next_unlock_after(now, settings.profit_unlock_hour, tz)

        packages_by_user: dict[int, list[PackageRate]] = {}
        for purchase in await self.purchase_repo.get_all_active():
            live_rate = (
                purchase.package.daily_profit_amount
                if purchase.package is not None
                else purchase.daily_profit_amount
            )
            packages_by_user.setdefault(purchase.user_id, []).append(
                PackageRate(
                    purchase_id=purchase.id,
                    package_name=purchase.package_name,
                    daily_profit_amount=live_rate,
                )
            )

        rows: list[UserProfitRow] = []
        for user_id, packages in packages_by_user.items():
            user = await self.user_repo.get_by_id(user_id)
            entries = await self.ledger_repo.entries_since(
                user_id, LedgerEntryType.DAILY_PROFIT, day_start
            )
            profit_today = sum((entry.amount for entry in entries), Decimal("0"))
            balance_after = await self.ledger_repo.balance(user_id)
            rows.append(
                UserProfitRow(
                    user_id=user_id,
                    username=user.username if user else "",
                    activated_today=bool(entries),
                    first_activation_at=(
                        ensure_utc(entries[0].created_at) if entries else None
                    ),
                    profit_today=profit_today,
                    balance_before=balance_after - profit_today,
                    balance_after=balance_after,
                    lifetime_profit=await self.ledger_repo.sum_by_type(
                        user_id, LedgerEntryType.DAILY_PROFIT
                    ),
                    packages=packages,
                )
            )

        rows.sort(key=lambda row: (not row.activated_today, row.username))
        activated = sum(1 for row in rows if row.activated_today)

        return DailyProfitHistory(
            day_start=day_start,
            next_reset=next_reset,
            users=rows,
            summary=ProfitHistorySummary(
                total_users_with_vip=len(rows),
                activated_today=activated,
                not_activated_today=len(rows) - activated,
                total_profit_today=sum(
                    (row.profit_today for row in rows), Decimal("0")
                ),
            ),
        )
