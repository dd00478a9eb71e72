"""VIP ledger: investment, referral and daily profit crediting core."""

__version__ = "1.0.0"
