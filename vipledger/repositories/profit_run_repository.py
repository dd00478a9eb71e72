"""
Daily profit run repository.

Compare-and-swap access to the bulk run singleton.
"""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.constants import DAILY_PROFIT_RUN_ID
from vipledger.models.daily_profit_run import DailyProfitRun
from vipledger.repositories.base import BaseRepository


class ProfitRunRepository(BaseRepository[DailyProfitRun]):
    """Bulk run singleton repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize run repository."""
        super().__init__(DailyProfitRun, session)

    async def get_singleton(self) -> DailyProfitRun | None:
        """The singleton row, bypassing the identity map cache."""
        return await self.session.get(
            DailyProfitRun, DAILY_PROFIT_RUN_ID, populate_existing=True
        )

    async def create_singleton(self) -> DailyProfitRun:
        """Insert the singleton row (never run yet)."""
        return await self.create(id=DAILY_PROFIT_RUN_ID, last_run_at=None, version=0)

    async def compare_and_swap(
        self, expected_version: int, last_run_at: datetime
    ) -> bool:
        """
        Record a run if nobody else did since expected_version was read.

        Args:
            expected_version: Version observed by the caller
            last_run_at: New run timestamp

        Returns:
            True if this call won the swap
        """
        stmt = (
            update(DailyProfitRun)
            .where(
                DailyProfitRun.id == DAILY_PROFIT_RUN_ID,
                DailyProfitRun.version == expected_version,
            )
            .values(last_run_at=last_run_at, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
