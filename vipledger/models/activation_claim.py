"""
ActivationClaim model.

Per-user-per-cycle marker row. The unique constraint serialises concurrent
activations of the same user within one activation cycle.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base


class ActivationClaim(Base):
    """Marker inserted in the same transaction as the profit credit."""

    __tablename__ = "activation_claims"
    __table_args__ = (
        UniqueConstraint("user_id", "cycle_key", name="uq_activation_claim_user_cycle"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    cycle_key: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
