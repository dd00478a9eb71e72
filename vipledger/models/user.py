"""
User model.

Represents a registered platform user and their sponsor edge.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vipledger.models.base import Base


if TYPE_CHECKING:
    from vipledger.models.purchase import Purchase


class User(Base):
    """User model - registered users forming the sponsor forest."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "sponsor_id IS NULL OR sponsor_id <> id",
            name="check_user_not_self_sponsored",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )

    # Sponsor edge (at most one sponsor per user)
    sponsor_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    # Relationships
    purchases: Mapped[list["Purchase"]] = relationship(
        "Purchase",
        back_populates="user",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, username={self.username}, "
            f"sponsor_id={self.sponsor_id})>"
        )
