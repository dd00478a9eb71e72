"""
Repositories.

Data access layer. Repositories flush but never commit.
"""

from vipledger.repositories.activation_claim_repository import (
    ActivationClaimRepository,
)
from vipledger.repositories.base import BaseRepository
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.repositories.profit_run_repository import ProfitRunRepository
from vipledger.repositories.purchase_repository import PurchaseRepository
from vipledger.repositories.referral_rule_repository import (
    ReferralRuleRepository,
)
from vipledger.repositories.task_repository import TaskRepository
from vipledger.repositories.user_repository import UserRepository
from vipledger.repositories.vip_package_repository import VipPackageRepository


__all__ = [
    "BaseRepository",
    "ActivationClaimRepository",
    "LedgerRepository",
    "ProfitRunRepository",
    "PurchaseRepository",
    "ReferralRuleRepository",
    "TaskRepository",
    "UserRepository",
    "VipPackageRepository",
]
