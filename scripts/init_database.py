#!/usr/bin/env python3
"""Initialize database tables and the bulk run singleton."""

import asyncio
import sys

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine

from vipledger.config.constants import DAILY_PROFIT_RUN_ID
from vipledger.config.database import create_session_maker
from vipledger.config.settings import settings
from vipledger.models import Base, DailyProfitRun

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(database_url: str | None = None) -> None:
    """Create all database tables and the DailyProfitRun row."""
    logger.info("Connecting to database...")
    engine = create_async_engine(database_url or settings.database_url, echo=False)

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        if await session.get(DailyProfitRun, DAILY_PROFIT_RUN_ID) is None:
            session.add(DailyProfitRun(id=DAILY_PROFIT_RUN_ID, version=0))
            await session.commit()
            logger.info("Daily profit run singleton created")

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
