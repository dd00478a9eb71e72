"""
Services.

Business logic of the crediting core. Services own transaction
boundaries; repositories never commit.
"""

from vipledger.services.ledger_service import LedgerService
from vipledger.services.platform_service import ActivationStatus, PlatformService
from vipledger.services.roulette_service import RouletteService
from vipledger.services.subscription_service import SubscriptionService
from vipledger.services.task_service import TaskService
from vipledger.services.user_service import UserService


__all__ = [
    "ActivationStatus",
    "LedgerService",
    "PlatformService",
    "RouletteService",
    "SubscriptionService",
    "TaskService",
    "UserService",
]
