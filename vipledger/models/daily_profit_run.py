"""
DailyProfitRun model.

Single versioned row recording the last administrative bulk run. Updated
only through compare-and-swap on ``version``.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base


class DailyProfitRun(Base):
    """Bulk profit run singleton (id is always 1)."""

    __tablename__ = "daily_profit_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
