"""
ReferralBonusRule model.

Per-level commission percentage for the 3-level sponsor program.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from vipledger.models.base import Base
from vipledger.models.types import PercentType


class ReferralBonusRule(Base):
    """Commission percentage applied to a downline level."""

    __tablename__ = "referral_bonus_rules"
    __table_args__ = (
        CheckConstraint(
            "level >= 1 AND level <= 3", name="check_referral_rule_level_range"
        ),
        CheckConstraint(
            "percentage >= 0", name="check_referral_rule_percentage_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    # 10 means 10%
    percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)

    def __repr__(self) -> str:
        """String representation."""
        return f"<ReferralBonusRule(level={self.level}, percentage={self.percentage})>"
