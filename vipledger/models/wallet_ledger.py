"""
WalletLedgerEntry model.

Append-only signed monetary facts. Balances and earnings totals are folds
over this table; rows are never updated or deleted.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base
from vipledger.models.types import MoneyType


class WalletLedgerEntry(Base):
    """Immutable ledger entry attributable to a user and a cause."""

    __tablename__ = "wallet_ledger"
    __table_args__ = (
        Index("idx_wallet_ledger_user_type_created", "user_id", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    # Signed: negative amounts are debits (e.g. ADJUSTMENT discounts)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WalletLedgerEntry(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})>"
        )
