"""
Daily task repository.

Data access for task slots and per-user completions.
"""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.daily_task import DailyTask, TaskCompletion
from vipledger.repositories.base import BaseRepository
from vipledger.utils.datetime_utils import ensure_utc, utc_now


class TaskRepository(BaseRepository[DailyTask]):
    """Daily task repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task repository."""
        super().__init__(DailyTask, session)

    async def list_ordered(self, active_only: bool = False) -> list[DailyTask]:
        """Tasks ordered by position."""
        stmt = select(DailyTask).order_by(DailyTask.position)
        if active_only:
            stmt = stmt.where(DailyTask.is_active.is_(True))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active(self, limit: int) -> list[DailyTask]:
        """
        Active tasks, at most limit, ordered by position.

        Args:
            limit: Maximum number of task slots

        Returns:
            Active tasks
        """
        stmt = (
            select(DailyTask)
            .where(DailyTask.is_active.is_(True))
            .order_by(DailyTask.position)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_position(self, position: int) -> DailyTask | None:
        """Task occupying a slot."""
        return await self.get_by(position=position)

    async def add_completion(
        self, user_id: int, task_id: int, completed_at: datetime | None = None
    ) -> TaskCompletion:
        """Record a completion within the current transaction."""
        completion = TaskCompletion(
            user_id=user_id,
            task_id=task_id,
            completed_at=ensure_utc(completed_at) if completed_at else utc_now(),
        )
        self.session.add(completion)
        await self.session.flush()
        return completion

    async def latest_completions(
        self, user_id: int, task_ids: Iterable[int]
    ) -> dict[int, datetime]:
        """
        Most recent completion time per task for a user.

        Args:
            user_id: User ID
            task_ids: Tasks of interest

        Returns:
            Mapping task_id -> latest completed_at (UTC), tasks never
            completed are absent
        """
        ids = list(task_ids)
        if not ids:
            return {}
        stmt = (
            select(TaskCompletion.task_id, func.max(TaskCompletion.completed_at))
            .where(
                TaskCompletion.user_id == user_id,
                TaskCompletion.task_id.in_(ids),
            )
            .group_by(TaskCompletion.task_id)
        )
        result = await self.session.execute(stmt)
        return {
            task_id: ensure_utc(completed_at)
            for task_id, completed_at in result.all()
            if completed_at is not None
        }

    async def delete_with_completions(self, task_id: int) -> bool:
        """Delete a task and every completion recorded for it."""
        await self.session.execute(
            delete(TaskCompletion).where(TaskCompletion.task_id == task_id)
        )
        return await self.delete(task_id)
