"""
Derived statistics for the Social Battery dashboard.

Everything here is recomputable from the interaction log plus the
current level; nothing is stored as authoritative state. Days and weeks
are UTC calendar days; timestamps are normalized to UTC when parsed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from src.config.battery import (
    MAX_LEVEL,
    TREND_THRESHOLD,
    TREND_WINDOW,
)
from src.models.battery import (
    DashboardMetrics,
    EnergyTrend,
    InteractionType,
    RecoveryPattern,
    RiskLevel,
    SocialInteraction,
    WeeklySocialStats,
)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def sunday_based_weekday(moment: datetime) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (moment.weekday() + 1) % 7


def start_of_day(moment: datetime) -> datetime:
    """UTC midnight of the day containing `moment`."""
    return moment.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime) -> datetime:
    """UTC midnight of the most recent Sunday."""
    day = start_of_day(moment)
    return day - timedelta(days=sunday_based_weekday(day))


def interactions_since(
    interactions: Iterable[SocialInteraction],
    since: datetime,
) -> list[SocialInteraction]:
    return [i for i in interactions if i.timestamp >= since]


def total_minutes(interactions: Iterable[SocialInteraction]) -> float:
    return float(sum(i.duration for i in interactions))


def classify_risk(level: float) -> RiskLevel:
    """Risk tier: critical at or below 20, high below 40, medium below 60."""
    if level <= 20:
        return RiskLevel.CRITICAL
    if level < 40:
        return RiskLevel.HIGH
    if level < 60:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def energy_trend(interactions: Sequence[SocialInteraction]) -> EnergyTrend:
    """
    Compare the two halves of the last five post-interaction levels.

    The second half must differ from the first by more than 5 points to
    count as a trend.
    """
    recent = [i.energy_after for i in interactions[-TREND_WINDOW:]]
    if len(recent) < 2:
        return EnergyTrend.STABLE

    mid = len(recent) // 2
    first_avg = sum(recent[:mid]) / mid
    second_avg = sum(recent[mid:]) / (len(recent) - mid)

    if second_avg > first_avg + TREND_THRESHOLD:
        return EnergyTrend.INCREASING
    if second_avg < first_avg - TREND_THRESHOLD:
        return EnergyTrend.DECREASING
    return EnergyTrend.STABLE


def next_recovery_time(level: float, recovery_rate: float, now: datetime) -> datetime | None:
    """When passive recovery would refill the battery; None if it never will."""
    if level >= MAX_LEVEL:
        return now
    if recovery_rate <= 0:
        return None
    hours = (MAX_LEVEL - level) / recovery_rate
    return now + timedelta(hours=hours)


def build_dashboard_metrics(
    level: float,
    recovery_rate: float,
    interactions: Sequence[SocialInteraction],
    now: datetime,
) -> DashboardMetrics:
    """Assemble the dashboard read model at `now`."""
    return DashboardMetrics(
        current_social_battery=level,
        today_interaction_time=total_minutes(interactions_since(interactions, start_of_day(now))),
        weekly_interaction_time=total_minutes(interactions_since(interactions, start_of_week(now))),
        next_recovery_time=next_recovery_time(level, recovery_rate, now),
        energy_trend=energy_trend(interactions),
        risk_level=classify_risk(level),
    )


# =============================================================================
# Weekly stats
# =============================================================================


def recovery_patterns(
    interactions: Sequence[SocialInteraction],
    weeks: float | None = None,
) -> list[RecoveryPattern]:
    """
    Interaction types that restored the battery, most effective first.

    Only interactions with a net positive energy change count. The
    effectiveness score maps the mean gain onto 1-10 (10+ points = 10).

    Args:
        interactions: Interactions to evaluate
        weeks: Span used for the weekly frequency (derived from the data if None)
    """
    gains: dict[InteractionType, list[SocialInteraction]] = {}
    for interaction in interactions:
        if interaction.energy_delta > 0:
            gains.setdefault(interaction.type, []).append(interaction)
    if not gains:
        return []

    if weeks is None:
        first = min(i.timestamp for i in interactions)
        last = max(i.timestamp for i in interactions)
        weeks = max((last - first).total_seconds() / (7 * 86400), 1.0)

    patterns = []
    for interaction_type, items in gains.items():
        mean_gain = sum(i.energy_delta for i in items) / len(items)
        patterns.append(RecoveryPattern(
            activity_type=interaction_type.value,
            effectiveness_score=round(min(10.0, max(1.0, mean_gain)), 1),
            duration=round(sum(i.duration for i in items) / len(items), 1),
            frequency=round(len(items) / weeks, 2),
        ))
    patterns.sort(key=lambda p: p.effectiveness_score, reverse=True)
    return patterns


def compute_weekly_stats(
    interactions: Sequence[SocialInteraction],
    now: datetime,
) -> WeeklySocialStats:
    """Summarize the current week (Sunday-based)."""
    weekly = interactions_since(interactions, start_of_week(now))
    if not weekly:
        return WeeklySocialStats()

    drain_by_day: dict[int, float] = {}
    for interaction in weekly:
        if interaction.energy_delta < 0:
            day = sunday_based_weekday(interaction.timestamp)
            drain_by_day[day] = drain_by_day.get(day, 0.0) - interaction.energy_delta
    most_draining = (
        DAY_NAMES[max(drain_by_day, key=lambda d: drain_by_day[d])]
        if drain_by_day
        else "Monday"
    )

    enjoyment: dict[InteractionType, list[int]] = {}
    for interaction in weekly:
        enjoyment.setdefault(interaction.type, []).append(interaction.enjoyment)
    preferred = sorted(
        enjoyment,
        key=lambda t: sum(enjoyment[t]) / len(enjoyment[t]),
        reverse=True,
    )[:3]

    return WeeklySocialStats(
        total_interaction_time=total_minutes(weekly),
        average_energy_level=sum(i.energy_after for i in weekly) / len(weekly),
        most_draining_day=most_draining,
        preferred_interaction_types=tuple(preferred),
        recovery_patterns=tuple(recovery_patterns(weekly, weeks=1.0)),
    )
