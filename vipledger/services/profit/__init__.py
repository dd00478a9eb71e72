"""
Daily profit services.

- distributor: per-user activation credit
- bulk_runner: once-per-window administrative run
- history_report: admin report of the current window
"""

from vipledger.services.profit.bulk_runner import (
    BulkFailure,
    BulkProfitRunner,
    BulkRunResult,
    BulkRunStatus,
)
from vipledger.services.profit.distributor import (
    CreditDetail,
    DistributionResult,
    ProfitDistributor,
    resolve_rate,
)
from vipledger.services.profit.history_report import (
    DailyProfitHistory,
    DailyProfitReportService,
)


__all__ = [
    "BulkFailure",
    "BulkProfitRunner",
    "BulkRunResult",
    "BulkRunStatus",
    "CreditDetail",
    "DailyProfitHistory",
    "DailyProfitReportService",
    "DistributionResult",
    "ProfitDistributor",
    "resolve_rate",
]
