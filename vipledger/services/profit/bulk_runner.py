"""
Administrative bulk profit run.

Credits every ACTIVE purchase system-wide at most once per daily window.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.daily_profit_run import DailyProfitRun
from vipledger.models.enums import PurchaseStatus
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.profit_run_repository import ProfitRunRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.services.base_service import BaseService, log_operation
from vipledger.services.profit.distributor import credit_purchase, resolve_rate
from vipledger.utils.datetime_utils import (
    ensure_utc,
    next_unlock_after,
    unlock_window_start,
    utc_now,
)
from vipledger.utils.exceptions import (
    BulkRunLocked,
    ErrorCode,
    InvalidStateTransition,
    LedgerError,
    NotFound,
)


@dataclass
class BulkFailure:
    """Purchase the bulk run could not credit."""

    purchase_id: int
    user_id: int
    error_code: str
    error: str


@dataclass
class BulkRunResult:
    """Result of an administrative bulk run."""

    processed_count: int = 0
    synced_count: int = 0
    credited_total: Decimal = Decimal("0")
    failures: list[BulkFailure] = field(default_factory=list)


@dataclass
class BulkRunStatus:
    """State of the bulk run singleton as seen at a given instant."""

    last_run_at: datetime | None
    blocked: bool
    unlocks_at: datetime | None
    active_purchases: int


class BulkProfitRunner(BaseService):
    """Once-per-window administrative crediting of all ACTIVE purchases."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize bulk runner."""
        super().__init__(session)
        self.run_repo = ProfitRunRepository(session)
        self.purchase_repo = PurchaseRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.tz = settings.tzinfo
        self.unlock_hour = settings.profit_unlock_hour

    async def _load_run(self) -> DailyProfitRun:
        run = await self.run_repo.get_singleton()
        if run is not None:
            return run
        try:
            run = await self.run_repo.create_singleton()
            await self.session.commit()
            return run
        except IntegrityError:
            # Created concurrently by another runner
            await self.session.rollback()
            run = await self.run_repo.get_singleton()
            if run is None:
                raise
            return run

    def _is_blocked(self, last_run_at: datetime | None, now: datetime) -> bool:
        if last_run_at is None:
            return False
        window_start = unlock_window_start(now, self.unlock_hour, self.tz)
        return ensure_utc(last_run_at) >= window_start

    async def bulk_status(self, now: datetime | None = None) -> BulkRunStatus:
        """
        Report whether the bulk run is available.

        Args:
            now: Reference instant (defaults to now)

        Returns:
            BulkRunStatus
        """
        now = ensure_utc(now) if now else utc_now()
        run = await self.run_repo.get_singleton()
        last_run_at = ensure_utc(run.last_run_at) if run and run.last_run_at else None
        blocked = self._is_blocked(last_run_at, now)
        return BulkRunStatus(
            last_run_at=last_run_at,
            blocked=blocked,
            unlocks_at=(
                next_unlock_after(now, self.unlock_hour, self.tz) if blocked else None
            ),
            active_purchases=await self.purchase_repo.count_active(),
        )

    @log_operation
    async def distribute_bulk_admin(
        self, now: datetime | None = None
    ) -> BulkRunResult:
        """
        Credit every ACTIVE purchase once for the current window.

        The singleton row is swapped first; then snapshots are reconciled to
        the live rates and every purchase is credited in its own
        transaction. Per-purchase failures are collected, not raised.

        Args:
            now: Reference instant (defaults to now)

        Returns:
            BulkRunResult

        Raises:
            BulkRunLocked: If a run already happened in the current window
        """
        now = ensure_utc(now) if now else utc_now()
        await self._acquire_window(now)

        result = BulkRunResult()
        result.synced_count = await self._sync_snapshots()

        purchases = await self.purchase_repo.get_all_active()
        targets = [(purchase.id, purchase.user_id) for purchase in purchases]

        for purchase_id, user_id in targets:
            try:
                amount = await self.run_atomic(
                    lambda pid=purchase_id: self._credit_one(pid, now),
                    operation_name="bulk_credit_purchase",
                )
            except LedgerError as e:
                self.logger.warning(
                    "Bulk run failed for purchase",
                    extra={
                        "purchase_id": purchase_id,
                        "user_id": user_id,
                        "error": str(e),
                    },
                )
                result.failures.append(
                    BulkFailure(
                        purchase_id=purchase_id,
                        user_id=user_id,
                        error_code=e.code.value,
                        error=str(e),
                    )
                )
                continue
            result.processed_count += 1
            result.credited_total += amount

        self.logger.info(
            "Bulk daily profit run finished",
            extra={
                "processed": result.processed_count,
                "synced": result.synced_count,
                "failed": len(result.failures),
                "credited_total": str(result.credited_total),
            },
        )
        return result

    async def _acquire_window(self, now: datetime) -> None:
        run = await self._load_run()
        unlocks_at = next_unlock_after(now, self.unlock_hour, self.tz)

        if self._is_blocked(run.last_run_at, now):
            self.logger.info(
                "Bulk run locked for current window",
                extra={"unlocks_at": unlocks_at.isoformat()},
            )
            raise BulkRunLocked(
                "Daily profit bulk run already executed in this window",
                unlocks_at=unlocks_at,
            )

        swapped = await self.run_repo.compare_and_swap(run.version, now)
        if not swapped:
            await self.session.rollback()
            self.logger.info("Bulk run lost the compare-and-swap")
            raise BulkRunLocked(
                "Daily profit bulk run started concurrently",
                unlocks_at=unlocks_at,
            )
        await self.session.commit()

    async def _sync_snapshots(self) -> int:
        synced = 0
        for purchase in await self.purchase_repo.get_all_active():
            package = purchase.package
            if package is None or package.daily_profit_amount <= 0:
                continue
            if purchase.daily_profit_amount != package.daily_profit_amount:
                purchase.daily_profit_amount = package.daily_profit_amount
                synced += 1
        await self.session.commit()
        return synced

    async def _credit_one(self, purchase_id: int, now: datetime) -> Decimal:
        purchase = await self.purchase_repo.get_with_package(
            purchase_id, for_update=True
        )
        if purchase is None:
            raise NotFound(f"Purchase {purchase_id} not found")
        if purchase.status != PurchaseStatus.ACTIVE.value:
            raise InvalidStateTransition(
                f"Purchase {purchase_id} is no longer active",
                ErrorCode.INVALID_STATE,
            )
        rate = resolve_rate(purchase)
        await credit_purchase(self.ledger_repo, purchase, rate, now)
        await self.session.commit()
        return rate
