"""
DailyTask and TaskCompletion models.

Admin-curated task images gating the daily profit activation, and the
per-user completion records.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base


class DailyTask(Base):
    """Task slot. Updating it re-arms the activation cycle."""

    __tablename__ = "daily_tasks"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<DailyTask(id={self.id}, position={self.position}, "
            f"is_active={self.is_active}, updated_at={self.updated_at})>"
        )


class TaskCompletion(Base):
    """A user completed a task at a point in time."""

    __tablename__ = "task_completions"
    __table_args__ = (
        Index("idx_task_completion_user_task", "user_id", "task_id"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    task_id: Mapped[int] = mapped_column(
        ForeignKey("daily_tasks.id", ondelete="CASCADE"), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
