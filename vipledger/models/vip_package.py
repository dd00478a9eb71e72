"""
VipPackage model.

Tiered package configuration. Owned by the catalog administration,
read-only for crediting.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base
from vipledger.models.types import MoneyType


class VipPackage(Base):
    """VIP tier: investment required and daily profit granted."""

    __tablename__ = "vip_packages"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    investment_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    # Live rate: authoritative for every crediting operation
    daily_profit_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<VipPackage(id={self.id}, level={self.level}, name={self.name}, "
            f"daily_profit_amount={self.daily_profit_amount})>"
        )
