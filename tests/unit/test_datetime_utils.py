"""
Tests for activation window boundaries.

America/La_Paz is UTC-4 all year, so 01:00 local is 05:00 UTC.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from vipledger.utils.datetime_utils import (
    ensure_utc,
    local_day_start,
    next_local_midnight,
    next_unlock_after,
    unlock_window_start,
)


LA_PAZ = ZoneInfo("America/La_Paz")


class TestUnlockWindow:
    """Test window start and next unlock."""

    def test_after_unlock_hour_window_starts_today(self):
        """01:30 local belongs to the window opened at 01:00 the same day."""
        now = datetime(2026, 3, 10, 5, 30, tzinfo=UTC)
        assert unlock_window_start(now, 1, LA_PAZ) == datetime(
            2026, 3, 10, 5, 0, tzinfo=UTC
        )

    def test_before_unlock_hour_window_started_yesterday(self):
        """00:30 local still belongs to yesterday's window."""
        now = datetime(2026, 3, 10, 4, 30, tzinfo=UTC)
        assert unlock_window_start(now, 1, LA_PAZ) == datetime(
            2026, 3, 9, 5, 0, tzinfo=UTC
        )

    def test_exactly_at_unlock_hour(self):
        """The unlock instant opens the new window."""
        now = datetime(2026, 3, 10, 5, 0, tzinfo=UTC)
        assert unlock_window_start(now, 1, LA_PAZ) == now

    def test_next_unlock_is_one_day_after_window_start(self):
        """unlocks_at = window_start + 1 day."""
        now = datetime(2026, 3, 10, 4, 30, tzinfo=UTC)
        assert next_unlock_after(now, 1, LA_PAZ) == datetime(
            2026, 3, 10, 5, 0, tzinfo=UTC
        )

    def test_local_date_differs_from_utc_date(self):
        """23:00 local is already the next day in UTC."""
        now = datetime(2026, 3, 11, 3, 0, tzinfo=UTC)  # 2026-03-10 23:00 local
        assert unlock_window_start(now, 1, LA_PAZ) == datetime(
            2026, 3, 10, 5, 0, tzinfo=UTC
        )


class TestLocalDay:
    """Test local calendar day boundaries."""

    def test_local_day_start(self):
        """Local midnight is 04:00 UTC."""
        now = datetime(2026, 3, 10, 15, 0, tzinfo=UTC)
        assert local_day_start(now, LA_PAZ) == datetime(2026, 3, 10, 4, 0, tzinfo=UTC)

    def test_next_local_midnight(self):
        """Next local midnight after 23:00 local."""
        now = datetime(2026, 3, 11, 3, 0, tzinfo=UTC)
        assert next_local_midnight(now, LA_PAZ) == datetime(
            2026, 3, 11, 4, 0, tzinfo=UTC
        )


class TestEnsureUtc:
    """Test normalization to aware UTC."""

    def test_naive_is_tagged_as_utc(self):
        """Naive values from SQLite are stored UTC."""
        value = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(value) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_aware_is_converted(self):
        """Aware values are converted, not relabelled."""
        value = datetime(2026, 1, 1, 8, 0, tzinfo=LA_PAZ)
        assert ensure_utc(value) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
