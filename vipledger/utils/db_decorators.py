"""
Database decorators for automatic error handling and rollback.

Provides decorators to automatically handle database errors and rollbacks
in async service methods that use SQLAlchemy sessions.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple, kwargs: dict) -> AsyncSession | None:
    session = kwargs.get("session")
    if session is None and args:
        first = args[0]
        if isinstance(first, AsyncSession):
            session = first
        else:
            # Bound service method: the session lives on the instance
            session = getattr(first, "session", None)
    return session if isinstance(session, AsyncSession) else None


def with_rollback_on_error(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator that automatically rolls back the session on any exception.

    Usage:
        class MyService:
            @with_rollback_on_error
            async def do_work(self, ...):
                ...
                await self.session.commit()

    The session is taken from a ``session`` keyword, a first positional
    AsyncSession argument, or ``self.session``. The original exception is
    always re-raised.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)

        if session is None:
            logger.warning(
                f"Function {func.__name__} decorated with @with_rollback_on_error "
                f"but no session argument found. Rollback will not be performed."
            )
            return await func(*args, **kwargs)

        try:
            return await func(*args, **kwargs)
        except Exception as e:
            try:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
                )
            except Exception as rollback_error:
                logger.error(
                    f"Failed to rollback in {func.__name__}: {rollback_error}",
                    exc_info=True
                )
            raise

    return wrapper
