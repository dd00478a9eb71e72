"""Tests for transaction retry with backoff."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from vipledger.utils.db_retry import is_transient_db_error, run_with_retry
from vipledger.utils.exceptions import (
    ConcurrencyConflict,
    ErrorCode,
    InvalidRate,
    StorageError,
)


def locked_error() -> OperationalError:
    return OperationalError("INSERT ...", {}, Exception("database is locked"))


class SerializationFailure(Exception):
    sqlstate = "40001"


class TestTransientClassification:
    """Test which storage errors are retried."""

    def test_operational_error_is_transient(self):
        assert is_transient_db_error(locked_error())

    def test_serialization_failure_is_transient(self):
        error = IntegrityError("UPDATE ...", {}, SerializationFailure())
        assert is_transient_db_error(error)

    def test_unique_violation_is_not_transient(self):
        error = IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed"))
        assert not is_transient_db_error(error)

    def test_plain_exception_is_not_transient(self):
        assert not is_transient_db_error(ValueError("x"))


class TestRunWithRetry:
    """Test retry loop behavior."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self, mock_session):
        """Transient failures are rolled back and retried."""
        unit = AsyncMock(side_effect=[locked_error(), locked_error(), "done"])

        result = await run_with_retry(mock_session, unit, max_attempts=3, backoff=0)

        assert result == "done"
        assert unit.await_count == 3
        assert mock_session.rollback.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_conflict(self, mock_session):
        """After the retry budget the caller gets ConcurrencyConflict."""
        unit = AsyncMock(side_effect=locked_error())

        with pytest.raises(ConcurrencyConflict) as exc_info:
            await run_with_retry(mock_session, unit, max_attempts=2, backoff=0)

        assert exc_info.value.code is ErrorCode.CONFLICT
        assert unit.await_count == 2

    @pytest.mark.asyncio
    async def test_non_transient_storage_error(self, mock_session):
        """Non-transient database errors are not retried."""
        unit = AsyncMock(
            side_effect=IntegrityError("INSERT ...", {}, Exception("NOT NULL"))
        )

        with pytest.raises(StorageError):
            await run_with_retry(mock_session, unit, max_attempts=3, backoff=0)

        assert unit.await_count == 1
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_validation_error_is_not_retried(self, mock_session):
        """Application errors propagate unchanged after rollback."""
        unit = AsyncMock(side_effect=InvalidRate("rate is zero"))

        with pytest.raises(InvalidRate):
            await run_with_retry(mock_session, unit, max_attempts=3, backoff=0)

        assert unit.await_count == 1
        mock_session.rollback.assert_awaited_once()
