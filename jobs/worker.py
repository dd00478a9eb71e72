"""
Dramatiq worker entry point.

Usage:
    dramatiq jobs.worker
"""

from vipledger.config.logging import setup_logging

setup_logging()

from jobs.broker import broker  # noqa: E402, F401
from jobs.tasks import daily_profit  # noqa: E402, F401
