"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Environment must be set before vipledger.config.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("TIMEZONE", "America/La_Paz")
os.environ.setdefault("PROFIT_UNLOCK_HOUR", "1")
os.environ.setdefault("ACTIVATION_POLICY", "time_window")
os.environ.setdefault("DB_RETRY_ATTEMPTS", "5")
os.environ.setdefault("DB_RETRY_BACKOFF", "0.01")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from vipledger.config.database import create_engine, create_session_maker
from vipledger.models import (
    Base,
    DailyTask,
    LedgerEntryType,
    Purchase,
    PurchaseStatus,
    ReferralBonusRule,
    User,
    VipPackage,
    WalletLedgerEntry,
)
from vipledger.utils.datetime_utils import ensure_utc, utc_now


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Engine on a fresh SQLite database file with all tables created."""
    db_engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test database."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session for the service under test."""
    async with session_maker() as db_session:
        yield db_session


class Seeder:
    """Writes fixture rows, each call in its own committed session."""

    def __init__(self, session_maker) -> None:
        self.session_maker = session_maker

    async def _add(self, obj):
        async with self.session_maker() as db_session:
            db_session.add(obj)
            await db_session.commit()
            return obj.id

    async def user(self, username: str, sponsor_id: int | None = None) -> int:
        return await self._add(
            User(username=username, sponsor_id=sponsor_id, created_at=utc_now())
        )

    async def package(
        self,
        name: str = "VIP 1",
        investment: Decimal = Decimal("100"),
        daily: Decimal = Decimal("5"),
        level: int = 1,
        enabled: bool = True,
    ) -> int:
        return await self._add(
            VipPackage(
                level=level,
                name=name,
                investment_amount=investment,
                daily_profit_amount=daily,
                enabled=enabled,
            )
        )

    async def purchase(
        self,
        user_id: int,
        package_id: int | None,
        status: PurchaseStatus = PurchaseStatus.ACTIVE,
        investment: Decimal = Decimal("100"),
        daily: Decimal = Decimal("5"),
        activated_at: datetime | None = None,
    ) -> int:
        return await self._add(
            Purchase(
                user_id=user_id,
                package_id=package_id,
                investment_amount=investment,
                status=status.value,
                daily_profit_amount=daily,
                total_credited=Decimal("0"),
                roulette_spent=False,
                created_at=utc_now(),
                activated_at=(
                    (activated_at or utc_now())
                    if status is PurchaseStatus.ACTIVE
                    else None
                ),
            )
        )

    async def rules(self, percentages: dict[int, Decimal]) -> None:
        async with self.session_maker() as db_session:
            for level, percentage in percentages.items():
                db_session.add(ReferralBonusRule(level=level, percentage=percentage))
            await db_session.commit()

    async def task(self, position: int, updated_at: datetime) -> int:
        return await self._add(
            DailyTask(
                position=position,
                image_url=f"https://img.example/{position}.png",
                is_active=True,
                updated_at=ensure_utc(updated_at),
            )
        )

    async def ledger(
        self,
        user_id: int,
        entry_type: LedgerEntryType,
        amount: Decimal,
        created_at: datetime | None = None,
    ) -> int:
        return await self._add(
            WalletLedgerEntry(
                user_id=user_id,
                type=entry_type.value,
                amount=amount,
                description="seed",
                created_at=ensure_utc(created_at) if created_at else utc_now(),
            )
        )

    async def set_package_rate(self, package_id: int, rate: Decimal) -> None:
        async with self.session_maker() as db_session:
            package = await db_session.get(VipPackage, package_id)
            package.daily_profit_amount = rate
            await db_session.commit()


@pytest.fixture
def seed(session_maker):
    """Row factory for integration tests."""
    return Seeder(session_maker)
