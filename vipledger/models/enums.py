"""
Model enumerations.

String enums stored as their value in VARCHAR columns.
"""

from enum import StrEnum


class LedgerEntryType(StrEnum):
    """Cause of a wallet ledger entry."""

    DAILY_PROFIT = "DAILY_PROFIT"
    REFERRAL_BONUS = "REFERRAL_BONUS"
    ADJUSTMENT = "ADJUSTMENT"
    ROULETTE_WIN = "ROULETTE_WIN"


class PurchaseStatus(StrEnum):
    """Subscription (purchase) lifecycle status."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
