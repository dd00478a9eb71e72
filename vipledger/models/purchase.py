"""
Purchase model.

One instance of a user holding a VIP package (a subscription), with its own
activation, crediting and one-shot roulette bookkeeping.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vipledger.config.constants import DEFAULT_PACKAGE_NAME
from vipledger.models.base import Base
from vipledger.models.enums import PurchaseStatus
from vipledger.models.types import MoneyType


if TYPE_CHECKING:
    from vipledger.models.user import User
    from vipledger.models.vip_package import VipPackage


class Purchase(Base):
    """Purchase model - package subscriptions."""

    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint(
            "investment_amount > 0", name="check_purchase_investment_positive"
        ),
        CheckConstraint(
            "total_credited >= 0", name="check_purchase_total_credited_non_negative"
        ),
        Index("idx_purchase_user_status", "user_id", "status"),
        Index("idx_purchase_user_package", "user_id", "package_id"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # References
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    package_id: Mapped[int | None] = mapped_column(
        ForeignKey("vip_packages.id", ondelete="SET NULL"),
        nullable=True,
    )

    investment_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PurchaseStatus.PENDING.value, index=True
    )

    # Display cache of the package rate; crediting always reads the live rate
    daily_profit_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    total_credited: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    last_credited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # One-shot roulette prize
    roulette_spent: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    roulette_prize: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    roulette_spent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="purchases",
    )
    package: Mapped["VipPackage | None"] = relationship("VipPackage")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Purchase(id={self.id}, user_id={self.user_id}, "
            f"package_id={self.package_id}, status={self.status})>"
        )

    @property
    def is_active(self) -> bool:
        """Check if purchase is active."""
        return self.status == PurchaseStatus.ACTIVE.value

    @property
    def package_name(self) -> str:
        """Package name, or a generic label if the package is gone."""
        return self.package.name if self.package else DEFAULT_PACKAGE_NAME
