"""
Column types shared by the ledger models.

Amounts are exact decimals; floats never reach the database.
"""

from sqlalchemy import DECIMAL

# Ledger amounts, investments and package rates (signed for adjustments)
MoneyType = DECIMAL(18, 8)

# Referral rule percentages, 10.5 means 10.5%
PercentType = DECIMAL(7, 4)
