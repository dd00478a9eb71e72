"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from vipledger.models.activation_claim import ActivationClaim
from vipledger.models.base import Base
from vipledger.models.daily_profit_run import DailyProfitRun
from vipledger.models.daily_task import DailyTask, TaskCompletion
from vipledger.models.enums import LedgerEntryType, PurchaseStatus
from vipledger.models.purchase import Purchase
from vipledger.models.referral_bonus_rule import ReferralBonusRule
from vipledger.models.user import User
from vipledger.models.vip_package import VipPackage
from vipledger.models.wallet_ledger import WalletLedgerEntry


__all__ = [
    # Base
    "Base",
    # Enums
    "LedgerEntryType",
    "PurchaseStatus",
    # Core Models
    "User",
    "Purchase",
    "WalletLedgerEntry",
    # Configuration Models
    "VipPackage",
    "ReferralBonusRule",
    # Activation Models
    "DailyTask",
    "TaskCompletion",
    "ActivationClaim",
    "DailyProfitRun",
]
