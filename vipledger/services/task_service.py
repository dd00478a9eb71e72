"""
Task service.

Admin management of the daily task slots and user completions. Updating a
slot opens a new task-gated activation cycle.
"""

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.models.daily_task import DailyTask, TaskCompletion
from vipledger.repositories.task_repository import TaskRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.services.activation import GateDecision, TaskGatedPolicy
from vipledger.services.base_service import BaseService, transaction
from vipledger.utils.datetime_utils import ensure_utc, utc_now
from vipledger.utils.exceptions import ErrorCode, NotFound, ValidationError


@dataclass
class TaskStatus:
    """A task as seen by one user."""

    task_id: int
    position: int
    image_url: str
    completed: bool


@dataclass
class TaskProgress:
    """User progress through the current task cycle."""

    completed: int
    total: int
    decision: GateDecision
    tasks: list[TaskStatus] = field(default_factory=list)


class TaskService(BaseService):
    """Daily task administration and completion."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task service."""
        super().__init__(session)
        self.task_repo = TaskRepository(session)
        self.user_repo = UserRepository(session)
        self.max_tasks = settings.max_daily_tasks

    async def list_tasks(self) -> list[DailyTask]:
        """All task slots ordered by position."""
        return await self.task_repo.list_ordered()

    def _validate_position(self, position: int) -> None:
        if not 1 <= position <= self.max_tasks:
            raise ValidationError(
                f"Task position must be between 1 and {self.max_tasks}",
                ErrorCode.INVALID_INPUT,
            )

    @transaction
    async def upsert_task(
        self,
        position: int,
        image_url: str,
        now: datetime | None = None,
    ) -> DailyTask:
        """
        Create or replace the task in a slot.

        Args:
            position: Slot, 1..MAX_DAILY_TASKS
            image_url: Task image
            now: Update instant (defaults to now)

        Returns:
            The task, active, with updated_at = now
        """
        self._validate_position(position)
        if not image_url or not image_url.strip():
            raise ValidationError("image_url is required", ErrorCode.INVALID_INPUT)

        now = ensure_utc(now) if now else utc_now()
        task = await self.task_repo.get_by_position(position)
        if task is None:
            task = await self.task_repo.create(
                position=position,
                image_url=image_url.strip(),
                is_active=True,
                updated_at=now,
            )
        else:
            task.image_url = image_url.strip()
            task.is_active = True
            task.updated_at = now
            await self.session.flush()

        self.logger.info(
            "Task updated",
            extra={"task_id": task.id, "position": position},
        )
        return task

    @transaction
    async def delete_task(self, position: int) -> bool:
        """
        Remove the task in a slot with its completions.

        Returns:
            True if a task was deleted
        """
        self._validate_position(position)
        task = await self.task_repo.get_by_position(position)
        if task is None:
            return False
        deleted = await self.task_repo.delete_with_completions(task.id)
        self.logger.info("Task deleted", extra={"position": position})
        return deleted

    @transaction
    async def complete_task(
        self,
        user_id: int,
        task_id: int,
        now: datetime | None = None,
    ) -> TaskCompletion:
        """
        Record that a user completed a task.

        Raises:
            NotFound: Unknown user or task
            ValidationError: Task is not active
        """
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFound(f"User {user_id} not found")
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found")
        if not task.is_active:
            raise ValidationError(
                f"Task {task_id} is not active", ErrorCode.INVALID_INPUT
            )

        completion = await self.task_repo.add_completion(user_id, task_id, now)
        self.logger.debug(
            "Task completed", extra={"user_id": user_id, "task_id": task_id}
        )
        return completion

    async def user_progress(
        self, user_id: int, now: datetime | None = None
    ) -> TaskProgress:
        """
        Which tasks of the current cycle the user completed.

        Args:
            user_id: User ID
            now: Reference instant (defaults to now)

        Returns:
            TaskProgress including the task-gated decision
        """
        now = ensure_utc(now) if now else utc_now()
        tasks = await self.task_repo.get_active(self.max_tasks)
        completions = await self.task_repo.latest_completions(
            user_id, [task.id for task in tasks]
        )
        statuses = [
            TaskStatus(
                task_id=task.id,
                position=task.position,
                image_url=task.image_url,
                completed=(
                    task.id in completions
                    and completions[task.id] > ensure_utc(task.updated_at)
                ),
            )
            for task in tasks
        ]
        decision = await TaskGatedPolicy(self.session, self.max_tasks).evaluate(
            user_id, now
        )
        return TaskProgress(
            completed=sum(1 for status in statuses if status.completed),
            total=len(statuses),
            decision=decision,
            tasks=statuses,
        )
