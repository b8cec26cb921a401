"""
Passive recovery math for the Social Battery.

recover() is the pure level update. recovery_hours_due() decides
whether a recovery tick applies at all:

- IDLE: fewer than 15 minutes since the last state update, or fewer
  than 30 minutes since the last interaction (drain cooldown)
- RECOVERING: both gates cleared, the tick credits the elapsed hours

A new interaction puts the battery back into IDLE.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from src.config.battery import (
    DEFAULT_RECOVERY_RATE,
    DRAIN_COOLDOWN_HOURS,
    MAX_LEVEL,
    MIN_TICK_HOURS,
    NO_INTERACTION_HOURS,
)


class RecoveryPhase(StrEnum):
    IDLE = "idle"
    RECOVERING = "recovering"


def recover(
    current_level: float,
    hours_elapsed: float,
    recovery_rate: float = DEFAULT_RECOVERY_RATE,
) -> float:
    """
    Level after hours_elapsed of passive recovery, capped at 100.

    Monotonic non-decreasing in hours_elapsed for any non-negative rate.
    """
    return min(current_level + recovery_rate * hours_elapsed, MAX_LEVEL)


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def recovery_phase(
    now: datetime,
    last_updated_at: datetime,
    last_interaction_at: datetime | None,
) -> RecoveryPhase:
    """Classify whether a tick at `now` would apply."""
    if _hours_between(last_updated_at, now) < MIN_TICK_HOURS:
        return RecoveryPhase.IDLE

    since_interaction = (
        _hours_between(last_interaction_at, now)
        if last_interaction_at is not None
        else NO_INTERACTION_HOURS
    )
    if since_interaction < DRAIN_COOLDOWN_HOURS:
        return RecoveryPhase.IDLE
    return RecoveryPhase.RECOVERING


def recovery_hours_due(
    now: datetime,
    last_updated_at: datetime,
    last_interaction_at: datetime | None,
) -> float | None:
    """
    Hours of recovery a tick at `now` should credit.

    Returns:
        Hours since the last state update, or None when the tick is a no-op
    """
    if recovery_phase(now, last_updated_at, last_interaction_at) is RecoveryPhase.IDLE:
        return None
    return _hours_between(last_updated_at, now)
