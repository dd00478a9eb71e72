"""Integration tests for the append-only ledger."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from vipledger.models.enums import LedgerEntryType
from vipledger.repositories.ledger_repository import LedgerRepository
from vipledger.services.ledger_service import LedgerService
from vipledger.utils.exceptions import ErrorCode, NotFound, ValidationError


class TestLedgerFold:
    """Balances and totals are folds over the entries."""

    @pytest.mark.asyncio
    async def test_balance_is_sum_of_entries(self, session, seed):
        user_id = await seed.user("alice")
        await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("5"))
        await seed.ledger(user_id, LedgerEntryType.REFERRAL_BONUS, Decimal("12.5"))
        await seed.ledger(user_id, LedgerEntryType.ADJUSTMENT, Decimal("-2"))
        await seed.ledger(user_id, LedgerEntryType.ROULETTE_WIN, Decimal("20"))

        service = LedgerService(session)
        breakdown = await service.earnings_breakdown(user_id)

        assert await service.balance(user_id) == Decimal("35.5")
        assert breakdown.daily_profit == Decimal("5")
        assert breakdown.referral_bonus == Decimal("12.5")
        assert breakdown.adjustments == Decimal("-2")
        assert breakdown.roulette == Decimal("20")
        assert breakdown.total == await service.balance(user_id)

    @pytest.mark.asyncio
    async def test_empty_ledger(self, session, seed):
        user_id = await seed.user("bob")
        service = LedgerService(session)

        assert await service.balance(user_id) == Decimal("0")
        assert await service.latest(user_id, LedgerEntryType.DAILY_PROFIT) is None
        breakdown = await service.earnings_breakdown(user_id)
        assert breakdown.total == Decimal("0")

    @pytest.mark.asyncio
    async def test_sum_by_type_since(self, session, seed):
        user_id = await seed.user("carol")
        old = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("5"), old)
        await seed.ledger(
            user_id, LedgerEntryType.DAILY_PROFIT, Decimal("7"), old + timedelta(days=1)
        )

        service = LedgerService(session)

        assert await service.sum_by_type(
            user_id, LedgerEntryType.DAILY_PROFIT
        ) == Decimal("12")
        assert await service.sum_by_type(
            user_id, LedgerEntryType.DAILY_PROFIT, since=old + timedelta(hours=1)
        ) == Decimal("7")

    @pytest.mark.asyncio
    async def test_latest_and_history_order(self, session, seed):
        user_id = await seed.user("dave")
        base = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        first = await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("1"), base)
        second = await seed.ledger(
            user_id, LedgerEntryType.DAILY_PROFIT, Decimal("2"), base + timedelta(hours=1)
        )
        await seed.ledger(
            user_id, LedgerEntryType.ADJUSTMENT, Decimal("3"), base + timedelta(hours=2)
        )

        service = LedgerService(session)

        assert await service.latest(user_id, LedgerEntryType.DAILY_PROFIT) == second
        history = await service.history(user_id, limit=2)
        assert [entry.amount for entry in history] == [Decimal("3"), Decimal("2")]
        page_two = await service.history(user_id, limit=2, offset=2)
        assert [entry.id for entry in page_two] == [first]


class TestAppendOnly:
    """Entries are never updated or deleted."""

    @pytest.mark.asyncio
    async def test_update_and_delete_are_refused(self, session, seed):
        user_id = await seed.user("erin")
        entry_id = await seed.ledger(user_id, LedgerEntryType.DAILY_PROFIT, Decimal("5"))
        repo = LedgerRepository(session)

        with pytest.raises(TypeError):
            await repo.update(entry_id, amount=Decimal("50"))
        with pytest.raises(TypeError):
            await repo.delete(entry_id)


class TestAdjustments:
    """Manual corrections."""

    @pytest.mark.asyncio
    async def test_record_credit_and_debit(self, session, seed):
        user_id = await seed.user("frank")
        service = LedgerService(session)

        await service.record_adjustment(user_id, Decimal("10"), "Bonus")
        await service.record_adjustment(user_id, Decimal("-4"), "Fee")

        items = await service.adjustments(user_id)
        assert [(item.amount, item.kind) for item in items] == [
            (Decimal("-4"), "debit"),
            (Decimal("10"), "credit"),
        ]
        assert await service.balance(user_id) == Decimal("6")

    @pytest.mark.asyncio
    async def test_adjustments_are_paged(self, session, seed):
        user_id = await seed.user("paula")
        service = LedgerService(session)
        for amount in ("1", "2", "3"):
            await service.record_adjustment(user_id, Decimal(amount), "Manual")

        first_page = await service.adjustments(user_id, limit=2)
        second_page = await service.adjustments(user_id, limit=2, offset=2)

        assert [item.amount for item in first_page] == [Decimal("3"), Decimal("2")]
        assert [item.amount for item in second_page] == [Decimal("1")]
        with pytest.raises(ValidationError) as exc_info:
            await service.adjustments(user_id, limit=0)
        assert exc_info.value.code is ErrorCode.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_zero_adjustment_rejected(self, session, seed):
        user_id = await seed.user("gina")
        service = LedgerService(session)

        with pytest.raises(ValidationError) as exc_info:
            await service.record_adjustment(user_id, Decimal("0"))

        assert exc_info.value.code is ErrorCode.INVALID_INPUT
        assert await service.balance(user_id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, session):
        service = LedgerService(session)

        with pytest.raises(NotFound):
            await service.record_adjustment(999, Decimal("5"))


class TestEarningsHistory:
    """Daily profit per local calendar day."""

    @pytest.mark.asyncio
    async def test_zero_filled_days(self, session, seed):
        user_id = await seed.user("hank")
        # Local dates (UTC-4): 2026-03-08 and 2026-03-10
        await seed.ledger(
            user_id,
            LedgerEntryType.DAILY_PROFIT,
            Decimal("5"),
            datetime(2026, 3, 8, 15, 0, tzinfo=UTC),
        )
        await seed.ledger(
            user_id,
            LedgerEntryType.DAILY_PROFIT,
            Decimal("7"),
            datetime(2026, 3, 10, 15, 0, tzinfo=UTC),
        )
        # Before the requested range
        await seed.ledger(
            user_id,
            LedgerEntryType.DAILY_PROFIT,
            Decimal("100"),
            datetime(2026, 3, 1, 15, 0, tzinfo=UTC),
        )

        service = LedgerService(session)
        history = await service.earnings_history(
            user_id, days=3, now=datetime(2026, 3, 10, 20, 0, tzinfo=UTC)
        )

        assert [(item.day.isoformat(), item.amount) for item in history] == [
            ("2026-03-08", Decimal("5")),
            ("2026-03-09", Decimal("0")),
            ("2026-03-10", Decimal("7")),
        ]
