"""
Referral services package.

Contains modular services for the referral program:
- chain_manager: sponsor forest traversal and acyclic assignment
- bonus_engine: 3-level bonus breakdown and explicit crediting
"""

from vipledger.services.referral.bonus_engine import (
    BonusRule,
    ReferralBonusEngine,
    ReferralBreakdown,
    ReferralCreditResult,
)
from vipledger.services.referral.chain_manager import ReferralChainManager


__all__ = [
    "BonusRule",
    "ReferralBonusEngine",
    "ReferralBreakdown",
    "ReferralChainManager",
    "ReferralCreditResult",
]
