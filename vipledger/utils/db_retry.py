"""
Transaction retry helpers.

Runs a transactional unit of work with bounded retries and exponential
backoff on transient storage errors (lock contention, serialization
failures). Validation failures are never retried.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.utils.exceptions import ConcurrencyConflict, StorageError


T = TypeVar("T")

# PostgreSQL serialization_failure and deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})


def is_transient_db_error(exc: BaseException) -> bool:
    """
    Check if a database error is worth retrying.

    Args:
        exc: Exception raised by SQLAlchemy

    Returns:
        True for lock/isolation conflicts and dropped connections
    """
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return sqlstate in TRANSIENT_SQLSTATES
    return False


async def run_with_retry(
    session: AsyncSession,
    unit_of_work: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff: float = 0.1,
    operation_name: str = "transaction",
) -> T:
    """
    Execute a unit of work, rolling back and retrying transient failures.

    The unit of work must be safe to re-run from scratch: it is expected to
    commit on success and every attempt starts from a rolled back session.

    Args:
        session: Session used by the unit of work
        unit_of_work: Factory returning the coroutine to run
        max_attempts: Maximum number of attempts
        backoff: Base delay in seconds, doubled on every attempt
        operation_name: Operation name for logging

    Returns:
        Result of the unit of work

    Raises:
        ConcurrencyConflict: If every attempt failed with a transient error
        StorageError: On a non-transient storage failure
    """
    last_error: BaseException | None = None

    for attempt in range(max_attempts):
        try:
            return await unit_of_work()
        except DBAPIError as e:
            await session.rollback()
            if not is_transient_db_error(e):
                logger.error(f"{operation_name} failed with storage error: {e}")
                raise StorageError(f"{operation_name} failed: {e}") from e

            last_error = e
            if attempt < max_attempts - 1:
                delay = backoff * (2 ** attempt)
                logger.warning(
                    f"{operation_name} conflict on attempt "
                    f"{attempt + 1}/{max_attempts}: {e}. Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
        except Exception:
            await session.rollback()
            raise

    logger.error(f"{operation_name} failed after {max_attempts} attempts: {last_error}")
    raise ConcurrencyConflict(
        f"{operation_name} failed after {max_attempts} attempts"
    ) from last_error
