"""
Business constants.

Single source of truth for values that are not deployment configuration.
"""

from decimal import Decimal
from typing import NamedTuple


# Referral program: sponsor tree is walked exactly this many levels deep
REFERRAL_DEPTH = 3
REFERRAL_LEVELS = (1, 2, 3)
# Transaction-scoped advisory lock key serialising sponsor changes (PostgreSQL)
SPONSOR_FOREST_LOCK_KEY = 7_310_001

# Activation cycle defaults (overridable through settings)
DEFAULT_PROFIT_UNLOCK_HOUR = 1
DEFAULT_MAX_DAILY_TASKS = 4

# Roulette
DEFAULT_ROULETTE_MIN_INVESTMENT = 2000


class Prize(NamedTuple):
    """Roulette wheel slot."""

    label: str
    value: Decimal
    blocked: bool


# Order matches the wheel rendered by the client; the client only sends the index
ROULETTE_PRIZES: tuple[Prize, ...] = (
    Prize("5", Decimal("5"), False),
    Prize("20", Decimal("20"), False),
    Prize("50", Decimal("50"), False),
    Prize("100", Decimal("100"), False),
    Prize("80", Decimal("80"), False),
    Prize("200", Decimal("200"), False),
    Prize("300", Decimal("300"), False),
    Prize("500", Decimal("500"), True),
    Prize("1000", Decimal("1000"), True),
)

# Ledger descriptions
DAILY_PROFIT_DESCRIPTION = "Daily profit - {package}"
ROULETTE_DESCRIPTION = "Roulette prize - {package} package"
REFERRAL_BONUS_DESCRIPTION = "Referral bonus - levels 1-3"
DEFAULT_PACKAGE_NAME = "VIP"

# Singleton row id for the bulk profit run
DAILY_PROFIT_RUN_ID = 1
