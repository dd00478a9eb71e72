"""
Base service class.

Session, logging and transaction helpers shared by the ledger services.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.utils.db_retry import run_with_retry


T = TypeVar("T")


class BaseService:
    """
    Base class of the session-injected services.

    One service instance works on one AsyncSession; its logger is bound to
    the service name.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    async def run_atomic(
        self,
        unit_of_work: Callable[[], Any],
        operation_name: str,
    ) -> Any:
        """
        Run a self-committing unit of work with the configured retry budget.

        Args:
            unit_of_work: Factory returning the coroutine to run
            operation_name: Operation name for logging

        Returns:
            Result of the unit of work
        """
        return await run_with_retry(
            self.session,
            unit_of_work,
            max_attempts=settings.db_retry_attempts,
            backoff=settings.db_retry_backoff,
            operation_name=operation_name,
        )


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Run a service method as one transaction.

    Commits when the method returns and rolls back when it raises. Ledger
    errors are logged with their code, then re-raised unchanged.

    Usage:
        @transaction
        async def approve(self, purchase_id: int) -> Purchase:
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            self.logger.warning(
                f"{func.__name__} rolled back",
                extra={
                    "error_type": type(e).__name__,
                    "error_code": str(getattr(e, "code", "")) or None,
                    "error": str(e),
                },
            )
            raise

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """Log start, completion and duration of a long running service method."""
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        started = time.perf_counter()
        self.logger.info(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"{func.__name__} failed",
                extra={
                    "duration_seconds": round(time.perf_counter() - started, 3),
                    "error": str(e),
                },
            )
            raise

        self.logger.info(
            f"Completed {func.__name__}",
            extra={"duration_seconds": round(time.perf_counter() - started, 3)},
        )
        return result

    return wrapper
