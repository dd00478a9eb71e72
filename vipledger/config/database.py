"""
Database engine and session factory.

Provides the async SQLAlchemy engine used by services and jobs.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from vipledger.config.settings import settings


def create_engine(
    database_url: str | None = None, echo: bool | None = None
) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: Override for settings.database_url
        echo: Override for settings.database_echo

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.database_url
    kwargs: dict = {
        "echo": settings.database_echo if echo is None else echo,
    }
    if url.startswith("sqlite"):
        # One connection per session so writers wait on the file lock
        kwargs["poolclass"] = NullPool
        kwargs["connect_args"] = {"timeout": 30}
    else:
        kwargs["pool_pre_ping"] = True
    return create_async_engine(url, **kwargs)


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
