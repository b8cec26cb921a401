"""
Recommendation Engine for the Social Battery.

Maps the current battery level, recent interactions and the hour of day
to a short, ordered list of recovery suggestions:
- below 30: three urgent, immediate items
- below 50: creative solo time and mindfulness
- below 70: hobby time and tidying up
- always: one personalized item based on what has recharged the user before

Exactly one tier is chosen. The tier block always comes first, the
personalized item last, and the list is cut to five entries without
re-sorting.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.config.battery import MAX_RECOMMENDATIONS
from src.models.battery import SocialInteraction
from src.models.recommendation import (
    Recommendation,
    RecommendationPriority,
    RecommendationType,
)
from src.services.social_battery.stats import recovery_patterns

URGENT_THRESHOLD = 30.0
MEDIUM_THRESHOLD = 50.0
LOW_THRESHOLD = 70.0
EVENING_HOUR = 18

DEFAULT_PERSONAL_DESCRIPTION = "Based on your history, solo creative time works best for you."


def _urgent_tier(hour_of_day: int) -> list[Recommendation]:
    return [
        Recommendation(
            id="urgent-solo-time",
            priority=RecommendationPriority.URGENT,
            activity="Take immediate solo time",
            description="Find a quiet space for 15-30 minutes. No phones, no people.",
            estimated_benefit=15,
            duration=20,
            type=RecommendationType.IMMEDIATE,
        ),
        Recommendation(
            id="urgent-nature",
            priority=RecommendationPriority.URGENT,
            activity="Evening walk alone" if hour_of_day >= EVENING_HOUR else "Get some fresh air",
            description="Step outside for fresh air and natural light. Even 10 minutes helps.",
            estimated_benefit=12,
            duration=15,
            type=RecommendationType.IMMEDIATE,
        ),
        Recommendation(
            id="urgent-boundaries",
            priority=RecommendationPriority.URGENT,
            activity="Set immediate boundaries",
            description="Politely decline any non-essential social interactions for the next 2 hours.",
            estimated_benefit=10,
            duration=0,
            type=RecommendationType.IMMEDIATE,
        ),
    ]


_MEDIUM_TIER = (
    Recommendation(
        id="medium-creative-time",
        priority=RecommendationPriority.HIGH,
        activity="Engage in solo creative activity",
        description="Draw, write, or work on a personal project for 30 minutes.",
        estimated_benefit=20,
        duration=30,
        type=RecommendationType.SHORT_TERM,
    ),
    Recommendation(
        id="medium-mindfulness",
        priority=RecommendationPriority.MEDIUM,
        activity="Practice mindfulness",
        description="Try a 10-minute guided meditation or breathing exercise.",
        estimated_benefit=15,
        duration=10,
        type=RecommendationType.IMMEDIATE,
    ),
)

_LOW_TIER = (
    Recommendation(
        id="low-hobby",
        priority=RecommendationPriority.MEDIUM,
        activity="Pursue a hobby",
        description="Spend time on an activity you enjoy doing alone.",
        estimated_benefit=10,
        duration=45,
        type=RecommendationType.SHORT_TERM,
    ),
    Recommendation(
        id="low-organize",
        priority=RecommendationPriority.LOW,
        activity="Organize your space",
        description="Tidy up your environment while listening to calming music.",
        estimated_benefit=8,
        duration=30,
        type=RecommendationType.SHORT_TERM,
    ),
)


def tier_recommendations(current_level: float, hour_of_day: int) -> list[Recommendation]:
    """The fixed item block for the tier `current_level` falls in (may be empty)."""
    if current_level < URGENT_THRESHOLD:
        return _urgent_tier(hour_of_day)
    if current_level < MEDIUM_THRESHOLD:
        return list(_MEDIUM_TIER)
    if current_level < LOW_THRESHOLD:
        return list(_LOW_TIER)
    return []


def personalized_recommendation(
    recent_interactions: Sequence[SocialInteraction],
) -> Recommendation:
    """
    The user's most effective recovery activity so far.

    Falls back to solo creative time when no interaction has ever raised
    the battery.
    """
    description = DEFAULT_PERSONAL_DESCRIPTION
    patterns = recovery_patterns(recent_interactions)

    if patterns:
        best = patterns[0]
        activity = best.activity_type.replace("_", " ")
        description = (
            f"Based on your history, {activity} works best for you "
            f"(effectiveness {best.effectiveness_score:g}/10)."
        )

    return Recommendation(
        id="personal-effective",
        priority=RecommendationPriority.HIGH,
        activity="Your most effective recovery method",
        description=description,
        estimated_benefit=25,
        duration=45,
        type=RecommendationType.SHORT_TERM,
    )


def recommend(
    current_level: float,
    recent_interactions: Sequence[SocialInteraction],
    hour_of_day: int,
) -> list[Recommendation]:
    """
    Build the recommendation list for the current situation.

    Args:
        current_level: Battery level at call time (0-100)
        recent_interactions: Most recent interactions, oldest first
        hour_of_day: Local hour (0-23), used for the evening variant

    Returns:
        Tier items followed by the personalized item, at most five
    """
    items = tier_recommendations(current_level, hour_of_day)
    items.append(personalized_recommendation(recent_interactions))
    return items[:MAX_RECOMMENDATIONS]
