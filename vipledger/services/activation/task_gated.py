"""
Task gated activation policy.

A new cycle starts whenever an admin updates a task. The user must
complete every active task of the cycle before crediting, once.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.daily_task import DailyTask
from vipledger.repositories.task_repository import TaskRepository
from vipledger.services.activation.gate import (
    ActivationPolicy,
    GateDecision,
    GateReason,
)
from vipledger.utils.datetime_utils import (
    ensure_utc,
    local_day_start,
    next_local_midnight,
)


class TaskGatedPolicy(ActivationPolicy):
    """
    Allow once per task update cycle after all tasks are completed.

    With no active task the policy degrades to one credit per local
    calendar day.
    """

    name = "task_gated"

    def __init__(
        self, session: AsyncSession, max_tasks: int | None = None
    ) -> None:
        """
        Initialize policy.

        Args:
            session: Async database session
            max_tasks: Override for settings.max_daily_tasks
        """
        super().__init__(session)
        self.task_repo = TaskRepository(session)
        self.max_tasks = settings.max_daily_tasks if max_tasks is None else max_tasks

    async def _active_tasks(self) -> list[DailyTask]:
        return await self.task_repo.get_active(self.max_tasks)

    def _calendar_key(self, now: datetime) -> str:
        return f"day:{ensure_utc(now).astimezone(self.tz).date().isoformat()}"

    @staticmethod
    def _tasks_key(tasks: list[DailyTask]) -> str:
        newest = max(ensure_utc(task.updated_at) for task in tasks)
        return f"tasks:{newest.isoformat()}"

    async def cycle_key(self, user_id: int, now: datetime) -> str:
        """Cycle key: newest task update, or the local date without tasks."""
        tasks = await self._active_tasks()
        if not tasks:
            return self._calendar_key(now)
        return self._tasks_key(tasks)

    async def evaluate(self, user_id: int, now: datetime) -> GateDecision:
        """Check already-activated first, then task completion."""
        now = ensure_utc(now)
        tasks = await self._active_tasks()
        last_profit_at = await self.last_profit_at(user_id)

        if not tasks:
            decision = self._evaluate_calendar_day(now, last_profit_at)
            self._log_decision(user_id, decision)
            return decision

        newest_update = max(ensure_utc(task.updated_at) for task in tasks)
        completions = await self.task_repo.latest_completions(
            user_id, [task.id for task in tasks]
        )
        completed = sum(
            1
            for task in tasks
            if task.id in completions
            and completions[task.id] > ensure_utc(task.updated_at)
        )

        if last_profit_at is not None and last_profit_at >= newest_update:
            reason = GateReason.ALREADY_ACTIVATED
        elif completed < len(tasks):
            reason = GateReason.TASKS_INCOMPLETE
        else:
            reason = GateReason.NONE

        # The next cycle opens only when an admin updates a task
        decision = GateDecision(
            can_activate=reason is GateReason.NONE,
            reason=reason,
            unlocks_at=None,
            tasks_completed=completed,
            tasks_total=len(tasks),
            cycle_key=self._tasks_key(tasks),
        )
        self._log_decision(user_id, decision)
        return decision

    def _evaluate_calendar_day(
        self, now: datetime, last_profit_at: datetime | None
    ) -> GateDecision:
        day_start = local_day_start(now, self.tz)
        if last_profit_at is not None and last_profit_at >= day_start:
            return GateDecision(
                can_activate=False,
                reason=GateReason.ALREADY_ACTIVATED,
                unlocks_at=next_local_midnight(now, self.tz),
                tasks_completed=0,
                tasks_total=0,
                cycle_key=self._calendar_key(now),
            )
        return GateDecision(
            can_activate=True,
            reason=GateReason.NONE,
            unlocks_at=None,
            tasks_completed=0,
            tasks_total=0,
            cycle_key=self._calendar_key(now),
        )
