"""Tests for daily profit rate resolution."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from vipledger.services.profit.distributor import resolve_rate
from vipledger.utils.exceptions import ErrorCode, InvalidRate


def make_purchase(snapshot: str, live: str | None):
    package = (
        SimpleNamespace(daily_profit_amount=Decimal(live)) if live is not None else None
    )
    return SimpleNamespace(
        id=1, package=package, daily_profit_amount=Decimal(snapshot)
    )


class TestResolveRate:
    """Live package rate is authoritative."""

    def test_live_rate_wins_over_snapshot(self):
        assert resolve_rate(make_purchase("5", "7.5")) == Decimal("7.5")

    def test_snapshot_used_when_package_missing(self):
        assert resolve_rate(make_purchase("5", None)) == Decimal("5")

    @pytest.mark.parametrize("live", ["0", "-1"])
    def test_non_positive_live_rate(self, live):
        with pytest.raises(InvalidRate) as exc_info:
            resolve_rate(make_purchase("5", live))
        assert exc_info.value.code is ErrorCode.INVALID_RATE

    def test_non_positive_snapshot_without_package(self):
        with pytest.raises(InvalidRate):
            resolve_rate(make_purchase("0", None))
