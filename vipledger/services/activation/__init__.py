"""
Activation gate package.

Pluggable policies deciding when a user may trigger the daily profit:
- time_window: once per daily window (PROFIT_UNLOCK_HOUR local)
- task_gated: once per task update cycle, after completing every task
"""

from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.config.settings import settings
from vipledger.services.activation.gate import (
    ActivationPolicy,
    GateDecision,
    GateReason,
)
from vipledger.services.activation.task_gated import TaskGatedPolicy
from vipledger.services.activation.time_window import TimeWindowPolicy


POLICIES: dict[str, type[ActivationPolicy]] = {
    TimeWindowPolicy.name: TimeWindowPolicy,
    TaskGatedPolicy.name: TaskGatedPolicy,
}


def get_activation_policy(
    session: AsyncSession, name: str | None = None
) -> ActivationPolicy:
    """
    Build the configured activation policy.

    Args:
        session: Async database session
        name: Policy name (defaults to settings.activation_policy)

    Returns:
        Policy instance bound to the session
    """
    policy_name = name or settings.activation_policy
    try:
        policy_class = POLICIES[policy_name]
    except KeyError as e:
        raise ValueError(f"Unknown activation policy: {policy_name}") from e
    return policy_class(session)


__all__ = [
    "ActivationPolicy",
    "GateDecision",
    "GateReason",
    "TaskGatedPolicy",
    "TimeWindowPolicy",
    "POLICIES",
    "get_activation_policy",
]
