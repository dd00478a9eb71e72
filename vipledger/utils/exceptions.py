"""
Exception handling utilities.

Defines the error taxonomy of the crediting core and categorizes it by
handling strategy.
"""

from datetime import datetime
from enum import StrEnum


class ErrorCode(StrEnum):
    """Error codes exposed to the routing layer."""

    ALREADY_ACTIVATED = "ALREADY_ACTIVATED"
    TASKS_INCOMPLETE = "TASKS_INCOMPLETE"
    NO_ACTIVE_SUBSCRIPTIONS = "NO_ACTIVE_SUBSCRIPTIONS"
    INVALID_RATE = "INVALID_RATE"
    INVALID_PRIZE = "INVALID_PRIZE"
    BLOCKED_PRIZE = "BLOCKED_PRIZE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    INVALID_STATE = "INVALID_STATE"
    INVALID_SPONSOR = "INVALID_SPONSOR"
    DUPLICATE_PURCHASE = "DUPLICATE_PURCHASE"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    LOCKED = "LOCKED"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE"


class LedgerError(Exception):
    """Base exception for the crediting core."""

    code: ErrorCode = ErrorCode.STORAGE

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class GateDenied(LedgerError):
    """Activation gate refused a new credit for this cycle."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        unlocks_at: datetime | None = None,
    ) -> None:
        super().__init__(message, code)
        self.unlocks_at = unlocks_at


class ValidationError(LedgerError):
    """Application-level validation failure. Nothing was written."""

    code = ErrorCode.INVALID_INPUT


class InvalidRate(ValidationError):
    """Resolved daily profit rate is zero or negative."""

    code = ErrorCode.INVALID_RATE


class InvalidStateTransition(ValidationError):
    """Subscription lifecycle transition not allowed."""

    code = ErrorCode.INVALID_STATE


class NotFound(ValidationError):
    """Referenced entity does not exist."""

    code = ErrorCode.NOT_FOUND


class BulkRunLocked(LedgerError):
    """Administrative bulk run already executed in the current window."""

    code = ErrorCode.LOCKED

    def __init__(self, message: str, unlocks_at: datetime | None) -> None:
        super().__init__(message)
        self.unlocks_at = unlocks_at


class ConcurrencyConflict(LedgerError):
    """Lock contention or isolation failure after the retry budget."""

    code = ErrorCode.CONFLICT


class StorageError(LedgerError):
    """Storage layer failure surfaced to the caller."""

    code = ErrorCode.STORAGE


# Exception categories based on handling strategy

# Reported to caller, never retried
NOT_RETRYABLE = (
    GateDenied,
    ValidationError,
    BulkRunLocked,
)

# Transient, caller may retry with backoff
RETRYABLE = (
    ConcurrencyConflict,
    StorageError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if exception may be retried by the caller.

    Args:
        exc: Exception to check

    Returns:
        True if exception is transient
    """
    return isinstance(exc, RETRYABLE)
