"""
Drain Calculator for the Social Battery.

Computes the energy cost of a single interaction:

    drain = type_base_rate * (intensity / 10) * duration_factor
            * people_factor * enjoyment_factor * context_multiplier

The result is clamped to [1, 50]. The clamp also floors the negative
solo_time base rate to 1, so solo time is reported as a minimal drain
rather than a recharge. This is a known quirk and is kept as-is.

The computed drain is informational. The committed battery level is
always the caller-supplied energy_after of the interaction.
"""

from __future__ import annotations

import math

from src.config.battery import (
    DEFAULT_CONTEXT_MULTIPLIER,
    DEFAULT_RECOVERY_RATE,
    DEFAULT_TYPE_BASE_RATE,
    MAX_DRAIN,
    MAX_DURATION_FACTOR,
    MAX_PEOPLE_FACTOR,
    MIN_DRAIN,
)
from src.models.battery import InteractionType, SocialContext, SocialInteraction

# Base drain in percentage points per interaction type
TYPE_BASE_RATES: dict[InteractionType, float] = {
    InteractionType.WORK_MEETING: 25.0,
    InteractionType.PUBLIC_EVENT: 30.0,
    InteractionType.SOCIAL_GATHERING: 20.0,
    InteractionType.ONLINE_MEETING: 15.0,
    InteractionType.PHONE_CALL: 10.0,
    InteractionType.CLOSE_FRIENDS: 8.0,
    InteractionType.FAMILY_TIME: 12.0,
    InteractionType.SOLO_TIME: -15.0,  # recovery; floored by the clamp
}

CONTEXT_MULTIPLIERS: dict[SocialContext, float] = {
    SocialContext.WORK: 1.3,
    SocialContext.PUBLIC: 1.5,
    SocialContext.PERSONAL: 0.8,
    SocialContext.INTIMATE: 0.6,
}


def type_base_rate(interaction_type: InteractionType | str) -> float:
    """Base drain for an interaction type (15 for anything unknown)."""
    return TYPE_BASE_RATES.get(interaction_type, DEFAULT_TYPE_BASE_RATE)  # type: ignore[call-overload]


def context_multiplier(context: SocialContext | str) -> float:
    """Multiplier for the social setting (1.0 for anything unknown)."""
    return CONTEXT_MULTIPLIERS.get(context, DEFAULT_CONTEXT_MULTIPLIER)  # type: ignore[call-overload]


def compute_drain(interaction: SocialInteraction) -> float:
    """
    Compute the energy drain of an interaction.

    Args:
        interaction: A validated interaction

    Returns:
        Drain in percentage points, always within [1, 50]
    """
    base_intensity = interaction.intensity / 10
    duration_factor = min(interaction.duration / 60, MAX_DURATION_FACTOR)
    people_factor = min(interaction.people_count / 10, MAX_PEOPLE_FACTOR)
    enjoyment_factor = (11 - interaction.enjoyment) / 10

    total = (
        type_base_rate(interaction.type)
        * base_intensity
        * duration_factor
        * people_factor
        * enjoyment_factor
        * context_multiplier(interaction.context)
    )
    return min(max(total, MIN_DRAIN), MAX_DRAIN)


def estimate_recovery_time(
    current_level: float,
    target_level: float,
    recovery_rate: float = DEFAULT_RECOVERY_RATE,
) -> int:
    """
    Whole hours of passive recovery needed to reach target_level.

    Returns 0 when the target is already reached. A non-positive rate
    never reaches the target, so -1 is returned in that case.
    """
    if current_level >= target_level:
        return 0
    if recovery_rate <= 0:
        return -1
    return math.ceil((target_level - current_level) / recovery_rate)
