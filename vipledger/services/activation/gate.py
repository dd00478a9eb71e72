"""
Activation gate interface.

A gate decides whether a user may trigger the daily profit credit now and
names the activation cycle the credit would belong to.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.enums import LedgerEntryType
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.utils.datetime_utils import ensure_utc


class GateReason(StrEnum):
    """Why the gate answered the way it did."""

    NONE = "NONE"
    ALREADY_ACTIVATED = "ALREADY_ACTIVATED"
    TASKS_INCOMPLETE = "TASKS_INCOMPLETE"


@dataclass
class GateDecision:
    """Outcome of a gate evaluation."""

    can_activate: bool
    reason: GateReason
    unlocks_at: datetime | None
    tasks_completed: int
    tasks_total: int
    cycle_key: str


class ActivationPolicy(ABC):
    """
    Gate policy.

    Implementations are read-only: they never write and never commit, so a
    decision can be evaluated inside the crediting transaction.
    """

    name: str = "abstract"

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize policy.

        Args:
            session: Async database session
        """
        self.session = session
        self.ledger_repo = LedgerRepository(session)
        self.tz = settings.tzinfo

    @abstractmethod
    async def evaluate(self, user_id: int, now: datetime) -> GateDecision:
        """
        Evaluate the gate for a user.

        Args:
            user_id: User ID
            now: Reference instant (UTC)

        Returns:
            GateDecision
        """

    @abstractmethod
    async def cycle_key(self, user_id: int, now: datetime) -> str:
        """Identifier of the activation cycle containing now."""

    async def last_profit_at(self, user_id: int) -> datetime | None:
        """Creation time of the user's latest DAILY_PROFIT entry."""
        entry = await self.ledger_repo.latest_entry(
            user_id, LedgerEntryType.DAILY_PROFIT
        )
        return ensure_utc(entry.created_at) if entry else None

    def _log_decision(self, user_id: int, decision: GateDecision) -> None:
        logger.debug(
            "Activation gate evaluated",
            extra={
                "policy": self.name,
                "user_id": user_id,
                "can_activate": decision.can_activate,
                "reason": decision.reason.value,
                "cycle_key": decision.cycle_key,
            },
        )
