"""
Daily profit task.

Runs the administrative bulk profit run once per daily window.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from jobs.broker import broker  # noqa: F401
from vipledger.services.profit import BulkProfitRunner
from vipledger.utils.exceptions import BulkRunLocked


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 min timeout
def run_daily_profit() -> dict:
    """
    Credit the daily profit of every ACTIVE purchase.

    A run already executed in the current window is logged and skipped,
    never retried.
    """
    logger.info("Starting daily profit bulk run...")
    result = run_async(_run_daily_profit_async())

    if result["locked"]:
        logger.info(
            f"Daily profit bulk run skipped: locked until {result['unlocks_at']}"
        )
    else:
        logger.info(
            f"Daily profit bulk run complete: {result['processed']} credited, "
            f"{result['synced']} synced, {result['failed']} failed"
        )
    return result


async def _run_daily_profit_async() -> dict:
    """Async implementation of the bulk run."""
    async with create_local_session() as session:
        runner = BulkProfitRunner(session)
        try:
            run = await runner.distribute_bulk_admin()
        except BulkRunLocked as e:
            return {
                "locked": True,
                "unlocks_at": e.unlocks_at.isoformat() if e.unlocks_at else None,
                "processed": 0,
                "synced": 0,
                "failed": 0,
            }

    return {
        "locked": False,
        "unlocks_at": None,
        "processed": run.processed_count,
        "synced": run.synced_count,
        "failed": len(run.failures),
    }
