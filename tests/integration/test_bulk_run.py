"""Integration tests for the administrative bulk profit run."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from vipledger.models.enums import PurchaseStatus
from vipledger.models.purchase import Purchase
from vipledger.services.profit import BulkProfitRunner, ProfitDistributor
from vipledger.services.platform_service import PlatformService
from vipledger.utils.exceptions import BulkRunLocked, ErrorCode, GateDenied


NOON = datetime(2026, 3, 10, 16, 0, tzinfo=UTC)  # 12:00 local
NEXT_UNLOCK = datetime(2026, 3, 11, 5, 0, tzinfo=UTC)  # 01:00 local next day


class TestBulkRun:
    """Once-per-window crediting of every ACTIVE purchase."""

    @pytest.mark.asyncio
    async def test_credits_every_active_purchase(self, session, session_maker, seed):
        alice = await seed.user("alice")
        bob = await seed.user("bob")
        package_id = await seed.package("Gold", Decimal("500"), Decimal("25"))
        await seed.purchase(alice, package_id, daily=Decimal("25"))
        await seed.purchase(bob, package_id, daily=Decimal("20"))
        await seed.purchase(bob, package_id, status=PurchaseStatus.REJECTED)

        platform = PlatformService(session)
        result = await platform.run_bulk_profit(now=NOON)

        assert result.processed_count == 2
        assert result.synced_count == 1
        assert result.failures == []
        assert await platform.wallet_balance(alice) == Decimal("25")
        assert await platform.wallet_balance(bob) == Decimal("25")

    @pytest.mark.asyncio
    async def test_second_run_in_window_is_locked(self, session, seed):
        user_id = await seed.user("carol")
        package_id = await seed.package()
        await seed.purchase(user_id, package_id)
        runner = BulkProfitRunner(session)

        await runner.distribute_bulk_admin(now=NOON)
        with pytest.raises(BulkRunLocked) as exc_info:
            await runner.distribute_bulk_admin(now=NOON + timedelta(hours=3))

        assert exc_info.value.code is ErrorCode.LOCKED
        assert exc_info.value.unlocks_at == NEXT_UNLOCK

    @pytest.mark.asyncio
    async def test_next_window_unlocks(self, session, seed):
        user_id = await seed.user("dave")
        package_id = await seed.package()
        await seed.purchase(user_id, package_id)
        runner = BulkProfitRunner(session)

        await runner.distribute_bulk_admin(now=NOON)
        result = await runner.distribute_bulk_admin(now=NEXT_UNLOCK + timedelta(minutes=1))

        assert result.processed_count == 1

    @pytest.mark.asyncio
    async def test_failures_are_collected(self, session, session_maker, seed):
        good_user = await seed.user("erin")
        bad_user = await seed.user("frank")
        good = await seed.package("Good", Decimal("100"), Decimal("5"))
        bad = await seed.package("Bad", Decimal("100"), Decimal("5"), level=2)
        await seed.purchase(good_user, good)
        bad_purchase = await seed.purchase(bad_user, bad)
        await seed.set_package_rate(bad, Decimal("0"))

        result = await BulkProfitRunner(session).distribute_bulk_admin(now=NOON)

        assert result.processed_count == 1
        assert len(result.failures) == 1
        assert result.failures[0].purchase_id == bad_purchase
        assert result.failures[0].error_code == ErrorCode.INVALID_RATE.value
        async with session_maker() as db_session:
            purchase = await db_session.get(Purchase, bad_purchase)
            assert purchase.total_credited == Decimal("0")

    @pytest.mark.asyncio
    async def test_user_activation_after_bulk_run_is_denied(self, session, seed):
        user_id = await seed.user("gina")
        package_id = await seed.package()
        await seed.purchase(user_id, package_id)

        await BulkProfitRunner(session).distribute_bulk_admin(now=NOON)
        with pytest.raises(GateDenied) as exc_info:
            await ProfitDistributor(session).distribute_for_user(
                user_id, now=NOON + timedelta(minutes=5)
            )

        assert exc_info.value.code is ErrorCode.ALREADY_ACTIVATED


class TestBulkStatus:
    """Admin screen state."""

    @pytest.mark.asyncio
    async def test_status_before_and_after_run(self, session, seed):
        user_id = await seed.user("hank")
        package_id = await seed.package()
        await seed.purchase(user_id, package_id)
        runner = BulkProfitRunner(session)

        before = await runner.bulk_status(now=NOON)
        await runner.distribute_bulk_admin(now=NOON)
        after = await runner.bulk_status(now=NOON + timedelta(hours=1))

        assert before.blocked is False
        assert before.last_run_at is None
        assert before.active_purchases == 1
        assert after.blocked is True
        assert after.last_run_at == NOON
        assert after.unlocks_at == NEXT_UNLOCK
