"""Integration tests for read-only reports."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from vipledger.models.enums import LedgerEntryType, PurchaseStatus
from vipledger.services.platform_service import PlatformService
from vipledger.services.profit.history_report import DailyProfitReportService


# 14:00 in La Paz; current window opened 2026-03-10 05:00 UTC
NOW = datetime(2026, 3, 10, 18, 0, tzinfo=UTC)


class TestDailyProfitHistory:
    """Admin daily profit report."""

    @pytest.mark.asyncio
    async def test_report_rows_and_summary(self, session, seed):
        package_id = await seed.package("Gold", Decimal("500"), Decimal("25"))
        zed = await seed.user("zed")
        bob = await seed.user("bob")
        carol = await seed.user("carol")
        await seed.purchase(zed, package_id, daily=Decimal("25"))
        await seed.purchase(bob, package_id, daily=Decimal("25"))
        await seed.purchase(carol, package_id, status=PurchaseStatus.PENDING)
        await seed.ledger(
            zed, LedgerEntryType.DAILY_PROFIT, Decimal("25"),
            datetime(2026, 3, 9, 12, 0, tzinfo=UTC),
        )
        await seed.ledger(
            zed, LedgerEntryType.DAILY_PROFIT, Decimal("25"),
            datetime(2026, 3, 10, 6, 0, tzinfo=UTC),
        )
        await seed.ledger(
            zed, LedgerEntryType.ADJUSTMENT, Decimal("10"),
            datetime(2026, 3, 8, 12, 0, tzinfo=UTC),
        )
        await seed.set_package_rate(package_id, Decimal("30"))

        report = await DailyProfitReportService(session).daily_profit_history(NOW)

        assert report.day_start == datetime(2026, 3, 10, 5, 0, tzinfo=UTC)
        assert report.next_reset == datetime(2026, 3, 11, 5, 0, tzinfo=UTC)
        assert [row.username for row in report.users] == ["zed", "bob"]

        zed_row, bob_row = report.users
        assert zed_row.activated_today
        assert zed_row.first_activation_at == datetime(2026, 3, 10, 6, 0, tzinfo=UTC)
        assert zed_row.profit_today == Decimal("25")
        assert zed_row.balance_before == Decimal("35")
        assert zed_row.balance_after == Decimal("60")
        assert zed_row.lifetime_profit == Decimal("50")
        assert zed_row.packages[0].daily_profit_amount == Decimal("30")

        assert not bob_row.activated_today
        assert bob_row.first_activation_at is None
        assert bob_row.profit_today == Decimal("0")

        assert report.summary.total_users_with_vip == 2
        assert report.summary.activated_today == 1
        assert report.summary.not_activated_today == 1
        assert report.summary.total_profit_today == Decimal("25")

    @pytest.mark.asyncio
    async def test_empty_report(self, session):
        report = await DailyProfitReportService(session).daily_profit_history(NOW)

        assert report.users == []
        assert report.summary.total_users_with_vip == 0
        assert report.summary.total_profit_today == Decimal("0")


class TestEarningsBreakdown:
    """Per-cause wallet totals."""

    @pytest.mark.asyncio
    async def test_breakdown_totals_match_balance(self, session, seed):
        user_id = await seed.user("alice")
        await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("12.5"))
        await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("12.5"))
        await seed.ledger(user_id, LedgerEntryType.REFERRAL_BONUS, Decimal("7"))
        await seed.ledger(user_id, LedgerEntryType.ADJUSTMENT, Decimal("-4"))
        await seed.ledger(user_id, LedgerEntryType.ROULETTE_WIN, Decimal("50"))
        platform = PlatformService(session)

        breakdown = await platform.earnings_breakdown(user_id)

        assert breakdown.daily_profit == Decimal("25")
        assert breakdown.referral_bonus == Decimal("7")
        assert breakdown.adjustments == Decimal("-4")
        assert breakdown.roulette == Decimal("50")
        assert breakdown.total == Decimal("78")
        assert breakdown.total == await platform.wallet_balance(user_id)

    @pytest.mark.asyncio
    async def test_breakdown_of_empty_wallet(self, session, seed):
        user_id = await seed.user("bob")

        breakdown = await PlatformService(session).earnings_breakdown(user_id)

        assert breakdown.total == Decimal("0")
        assert breakdown.daily_profit == Decimal("0")
