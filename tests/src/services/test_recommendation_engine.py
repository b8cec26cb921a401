"""
Tests for the recommendation engine.

Covers:
- Tier selection by battery level (urgent / medium / low / none)
- Evening variant of the nature item
- Personalized item (default and history-based)
- Ordering and the five-item cap
"""

import pytest

from src.models.battery import InteractionType, SocialContext
from src.models.recommendation import RecommendationPriority, RecommendationType
from src.services.recommendation_engine import (
    DEFAULT_PERSONAL_DESCRIPTION,
    personalized_recommendation,
    recommend,
    tier_recommendations,
)


def ids(items):
    return [r.id for r in items]


# =============================================================================
# Tiers
# =============================================================================


class TestTiers:
    def test_critical_level_gets_urgent_block(self):
        items = recommend(20, [], hour_of_day=14)

        assert ids(items) == [
            "urgent-solo-time",
            "urgent-nature",
            "urgent-boundaries",
            "personal-effective",
        ]
        assert all(r.priority is RecommendationPriority.URGENT for r in items[:3])
        assert all(r.type is RecommendationType.IMMEDIATE for r in items[:3])

    def test_medium_block(self):
        assert ids(recommend(40, [], 10)) == ["medium-creative-time", "medium-mindfulness", "personal-effective"]

    def test_low_block(self):
        assert ids(recommend(60, [], 10)) == ["low-hobby", "low-organize", "personal-effective"]

    def test_healthy_level_gets_only_personal_item(self):
        assert ids(recommend(85, [], 10)) == ["personal-effective"]

    @pytest.mark.parametrize(
        "level,first_id",
        [
            (29.9, "urgent-solo-time"),
            (30, "medium-creative-time"),
            (49.9, "medium-creative-time"),
            (50, "low-hobby"),
            (69.9, "low-hobby"),
            (70, "personal-effective"),
        ],
    )
    def test_thresholds_are_exclusive(self, level, first_id):
        assert recommend(level, [], 10)[0].id == first_id

    def test_no_tier_above_seventy(self):
        assert tier_recommendations(70, 12) == []


class TestEveningVariant:
    @pytest.mark.parametrize("hour", [18, 21, 23])
    def test_evening(self, hour):
        nature = tier_recommendations(10, hour)[1]
        assert nature.activity == "Evening walk alone"

    @pytest.mark.parametrize("hour", [0, 9, 17])
    def test_daytime(self, hour):
        nature = tier_recommendations(10, hour)[1]
        assert nature.activity == "Get some fresh air"


# =============================================================================
# Personalized item
# =============================================================================


class TestPersonalized:
    def test_default_without_history(self):
        item = personalized_recommendation([])
        assert item.description == DEFAULT_PERSONAL_DESCRIPTION
        assert item.priority is RecommendationPriority.HIGH
        assert item.estimated_benefit == 25
        assert item.duration == 45

    def test_default_when_nothing_recharged(self, make_interaction):
        item = personalized_recommendation([make_interaction()])
        assert item.description == DEFAULT_PERSONAL_DESCRIPTION

    def test_uses_most_effective_activity(self, make_interaction):
        recent = [
            make_interaction(id="1", type=InteractionType.SOLO_TIME, context=SocialContext.PERSONAL,
                             energy_before=40, energy_after=48),
            make_interaction(id="2", type=InteractionType.CLOSE_FRIENDS, context=SocialContext.PERSONAL,
                             energy_before=50, energy_after=53),
        ]
        item = personalized_recommendation(recent)
        assert item.description == "Based on your history, solo time works best for you (effectiveness 8/10)."


# =============================================================================
# Ordering
# =============================================================================


def test_personal_item_is_last_and_list_is_capped(make_interaction):
    for level in (0, 25, 45, 65, 95):
        items = recommend(level, [make_interaction()], 20)
        assert 1 <= len(items) <= 5
        assert items[-1].id == "personal-effective"


def test_recommendation_to_dict():
    data = recommend(20, [], 19)[1].to_dict()
    assert data == {
        "id": "urgent-nature",
        "priority": "urgent",
        "activity": "Evening walk alone",
        "description": "Step outside for fresh air and natural light. Even 10 minutes helps.",
        "estimated_benefit": 12,
        "duration": 15,
        "type": "immediate",
    }
