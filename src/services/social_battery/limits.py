"""
Personal Limits Estimator.

Derives adaptive caps from the trailing 30 days of interactions:
- daily limit: average minutes per active day + 20% buffer
- weekly limit: average minutes per active day * 7 + 10% buffer
- recovery time: 6-12 hours scaled by average intensity
- optimal level: the energy_before band with the highest mean enjoyment

Pure and idempotent: the same log and reference time always produce the
same limits. An empty window yields the fixed defaults.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, timedelta

from src.config.battery import (
    DAILY_LIMIT_BUFFER,
    DEFAULT_OPTIMAL_LEVEL,
    LIMITS_WINDOW_DAYS,
    WEEKLY_LIMIT_BUFFER,
)
from src.models.battery import PersonalLimits, SocialInteraction


def _ceil(value: float) -> int:
    # Round first so float noise (420 * 1.1 = 462.00000000000006) does not bump the ceiling
    return math.ceil(round(value, 9))


def recent_interactions(
    interactions: Iterable[SocialInteraction],
    now: datetime,
    days: int = LIMITS_WINDOW_DAYS,
) -> list[SocialInteraction]:
    """Interactions strictly newer than `days` before `now`."""
    window = timedelta(days=days)
    return [i for i in interactions if now - i.timestamp < window]


def daily_totals(interactions: Iterable[SocialInteraction]) -> dict[date, float]:
    """Total interaction minutes per calendar day."""
    totals: dict[date, float] = {}
    for interaction in interactions:
        day = interaction.timestamp.date()
        totals[day] = totals.get(day, 0.0) + interaction.duration
    return totals


def average_recovery_time(interactions: Sequence[SocialInteraction]) -> int:
    """Hours of recovery needed, 6 at intensity 0 up to 12 at intensity 10."""
    avg_intensity = sum(i.intensity for i in interactions) / len(interactions)
    return _ceil(6 + (avg_intensity / 10) * 6)


def optimal_social_level(interactions: Iterable[SocialInteraction]) -> int:
    """
    Midpoint of the energy_before band with the highest mean enjoyment.

    Bands are 10 wide. The first band to reach the best mean wins ties.
    """
    enjoyment_by_band: dict[int, list[float]] = {}
    for interaction in interactions:
        band = int(interaction.energy_before // 10) * 10
        enjoyment_by_band.setdefault(band, []).append(interaction.enjoyment)

    best_level = DEFAULT_OPTIMAL_LEVEL
    best_enjoyment = 0.0
    for band, enjoyments in enjoyment_by_band.items():
        avg = sum(enjoyments) / len(enjoyments)
        if avg > best_enjoyment:
            best_enjoyment = avg
            best_level = band + 5
    return best_level


def estimate_limits(
    interactions: Iterable[SocialInteraction],
    now: datetime | None = None,
) -> PersonalLimits:
    """
    Estimate personal limits from the trailing 30-day window.

    Args:
        interactions: Full interaction log (any order)
        now: Reference time for the window (defaults to current UTC time)

    Returns:
        PersonalLimits, or the defaults when the window is empty
    """
    reference = now or datetime.now(UTC)
    recent = recent_interactions(interactions, reference)
    if not recent:
        return PersonalLimits()

    totals = daily_totals(recent)
    avg_daily = sum(totals.values()) / len(totals)

    return PersonalLimits(
        daily_interaction_limit=_ceil(avg_daily * DAILY_LIMIT_BUFFER),
        weekly_interaction_limit=_ceil(avg_daily * 7 * WEEKLY_LIMIT_BUFFER),
        recovery_time_needed=average_recovery_time(recent),
        optimal_social_level=optimal_social_level(recent),
    )
