"""
Time window activation policy.

One credit per user per window. A window starts every day at the
configured local unlock hour.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.services.activation.gate import (
    ActivationPolicy,
    GateDecision,
    GateReason,
)
from vipledger.utils.datetime_utils import (
    ensure_utc,
    next_unlock_after,
    unlock_window_start,
)


class TimeWindowPolicy(ActivationPolicy):
    """Allow once per daily window starting at PROFIT_UNLOCK_HOUR local."""

    name = "time_window"

    def __init__(
        self, session: AsyncSession, unlock_hour: int | None = None
    ) -> None:
        """
        Initialize policy.

        Args:
            session: Async database session
            unlock_hour: Override for settings.profit_unlock_hour
        """
        super().__init__(session)
        self.unlock_hour = (
            settings.profit_unlock_hour if unlock_hour is None else unlock_hour
        )

    def window_start(self, now: datetime) -> datetime:
        """Start of the window containing now."""
        return unlock_window_start(now, self.unlock_hour, self.tz)

    async def cycle_key(self, user_id: int, now: datetime) -> str:
        """Cycle key: the window start instant."""
        return f"window:{self.window_start(now).isoformat()}"

    async def evaluate(self, user_id: int, now: datetime) -> GateDecision:
        """Allowed iff the last DAILY_PROFIT is missing or before the window."""
        now = ensure_utc(now)
        window_start = self.window_start(now)
        last_profit_at = await self.last_profit_at(user_id)

        if last_profit_at is None or last_profit_at < window_start:
            decision = GateDecision(
                can_activate=True,
                reason=GateReason.NONE,
                unlocks_at=None,
                tasks_completed=0,
                tasks_total=0,
                cycle_key=f"window:{window_start.isoformat()}",
            )
        else:
            decision = GateDecision(
                can_activate=False,
                reason=GateReason.ALREADY_ACTIVATED,
                unlocks_at=next_unlock_after(now, self.unlock_hour, self.tz),
                tasks_completed=0,
                tasks_total=0,
                cycle_key=f"window:{window_start.isoformat()}",
            )

        self._log_decision(user_id, decision)
        return decision
