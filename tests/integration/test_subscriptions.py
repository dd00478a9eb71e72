"""Integration tests for the purchase lifecycle."""

import asyncio
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from vipledger.models.enums import PurchaseStatus
from vipledger.services.ledger_service import LedgerService
from vipledger.services.subscription_service import SubscriptionService
from vipledger.utils.exceptions import (
    ErrorCode,
    InvalidStateTransition,
    NotFound,
    ValidationError,
)


APPROVED_AT = datetime(2026, 3, 10, 16, 0, tzinfo=UTC)


class TestLifecycle:
    """PENDING -> ACTIVE | REJECTED."""

    @pytest.mark.asyncio
    async def test_request_and_approve(self, session, seed):
        user_id = await seed.user("alice")
        package_id = await seed.package("Gold", Decimal("500"), Decimal("25"))
        service = SubscriptionService(session)

        purchase = await service.request_purchase(user_id, package_id)
        assert purchase.status == PurchaseStatus.PENDING.value
        assert purchase.investment_amount == Decimal("500")

        approved = await service.approve(purchase.id, now=APPROVED_AT)
        assert approved.status == PurchaseStatus.ACTIVE.value
        assert approved.activated_at == APPROVED_AT
        assert approved.daily_profit_amount == Decimal("25")

    @pytest.mark.asyncio
    async def test_reject_has_no_ledger_effect(self, session, seed):
        user_id = await seed.user("bob")
        package_id = await seed.package()
        service = SubscriptionService(session)

        purchase = await service.request_purchase(user_id, package_id)
        rejected = await service.reject(purchase.id)

        assert rejected.status == PurchaseStatus.REJECTED.value
        assert await LedgerService(session).balance(user_id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_rerequest_after_reject(self, session, seed):
        user_id = await seed.user("carol")
        package_id = await seed.package()
        service = SubscriptionService(session)

        first = await service.request_purchase(user_id, package_id)
        await service.reject(first.id)
        second = await service.request_purchase(user_id, package_id)

        assert second.id != first.id
        assert second.status == PurchaseStatus.PENDING.value

    @pytest.mark.parametrize("blocking", [PurchaseStatus.PENDING, PurchaseStatus.ACTIVE])
    @pytest.mark.asyncio
    async def test_duplicate_request_rejected(self, session, seed, blocking):
        user_id = await seed.user("dave")
        package_id = await seed.package()
        await seed.purchase(user_id, package_id, status=blocking)

        with pytest.raises(ValidationError) as exc_info:
            await SubscriptionService(session).request_purchase(user_id, package_id)

        assert exc_info.value.code is ErrorCode.DUPLICATE_PURCHASE

    @pytest.mark.parametrize("final", [PurchaseStatus.ACTIVE, PurchaseStatus.REJECTED])
    @pytest.mark.asyncio
    async def test_final_states_cannot_move(self, session, seed, final):
        user_id = await seed.user("erin")
        package_id = await seed.package()
        purchase_id = await seed.purchase(user_id, package_id, status=final)
        service = SubscriptionService(session)

        with pytest.raises(InvalidStateTransition):
            await service.approve(purchase_id)
        with pytest.raises(InvalidStateTransition):
            await service.reject(purchase_id)

    @pytest.mark.asyncio
    async def test_disabled_package(self, session, seed):
        user_id = await seed.user("frank")
        package_id = await seed.package(enabled=False)

        with pytest.raises(ValidationError):
            await SubscriptionService(session).request_purchase(user_id, package_id)

    @pytest.mark.asyncio
    async def test_unknown_purchase(self, session):
        with pytest.raises(NotFound):
            await SubscriptionService(session).approve(12345)


class TestConcurrentRequests:
    """Lifecycle writes serialise per user and per purchase."""

    @pytest.mark.asyncio
    async def test_parallel_requests_create_one_purchase(self, session_maker, seed):
        user_id = await seed.user("hank")
        package_id = await seed.package()

        async def request():
            async with session_maker() as db_session:
                return await SubscriptionService(db_session).request_purchase(
                    user_id, package_id
                )

        results = await asyncio.gather(
            *(request() for _ in range(5)), return_exceptions=True
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(failures) == 4
        assert all(
            isinstance(error, ValidationError)
            and error.code is ErrorCode.DUPLICATE_PURCHASE
            for error in failures
        )
        async with session_maker() as db_session:
            assert len(await SubscriptionService(db_session).list_for_user(user_id)) == 1

    @pytest.mark.asyncio
    async def test_parallel_approve_and_reject(self, session_maker, seed):
        user_id = await seed.user("iris")
        package_id = await seed.package()
        purchase_id = await seed.purchase(
            user_id, package_id, status=PurchaseStatus.PENDING
        )

        async def review(approve: bool):
            async with session_maker() as db_session:
                service = SubscriptionService(db_session)
                if approve:
                    return await service.approve(purchase_id)
                return await service.reject(purchase_id)

        results = await asyncio.gather(
            review(True), review(False), return_exceptions=True
        )

        winners = [r for r in results if not isinstance(r, BaseException)]
        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(winners) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidStateTransition)
        async with session_maker() as db_session:
            views = await SubscriptionService(db_session).list_for_user(user_id)
        assert views[0].status == winners[0].status


class TestListForUser:
    """Owner's view with live rates."""

    @pytest.mark.asyncio
    async def test_lists_newest_first_with_live_rate(self, session, seed):
        user_id = await seed.user("gina")
        package_id = await seed.package("Gold", Decimal("500"), Decimal("25"))
        older = await seed.purchase(user_id, package_id, status=PurchaseStatus.REJECTED)
        newer = await seed.purchase(user_id, package_id, daily=Decimal("25"))
        await seed.set_package_rate(package_id, Decimal("30"))

        views = await SubscriptionService(session).list_for_user(user_id)

        assert [view.id for view in views] == [newer, older]
        assert views[0].daily_profit_amount == Decimal("30")
        assert views[0].package_name == "Gold"
