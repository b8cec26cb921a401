"""
Tests for passive recovery and the tick gates.
"""

from datetime import timedelta

import pytest

from src.services.social_battery.recovery import (
    RecoveryPhase,
    recover,
    recovery_hours_due,
    recovery_phase,
)

# =============================================================================
# recover()
# =============================================================================


def test_recover_adds_rate_times_hours():
    assert recover(40, 2, 8) == 56


def test_recover_caps_at_hundred():
    assert recover(95, 3, 8) == 100


def test_recover_with_zero_hours_is_identity():
    assert recover(33.5, 0, 8) == 33.5


@pytest.mark.parametrize("level", [0, 20, 55.5, 99, 100])
@pytest.mark.parametrize("rate", [0, 1, 8, 25])
def test_recover_is_monotonic_in_hours(level, rate):
    results = [recover(level, hours, rate) for hours in (0, 0.25, 1, 4, 12, 48)]
    assert results == sorted(results)
    assert all(r == min(level + rate * h, 100) for r, h in zip(results, (0, 0.25, 1, 4, 12, 48)))


# =============================================================================
# Gates
# =============================================================================


class TestRecoveryGates:
    def test_idle_within_tick_window(self, now):
        last_update = now - timedelta(minutes=10)
        assert recovery_phase(now, last_update, None) is RecoveryPhase.IDLE
        assert recovery_hours_due(now, last_update, None) is None

    def test_idle_within_drain_cooldown(self, now):
        last_update = now - timedelta(hours=1)
        last_interaction = now - timedelta(minutes=20)
        assert recovery_phase(now, last_update, last_interaction) is RecoveryPhase.IDLE

    def test_recovering_once_both_gates_clear(self, now):
        last_update = now - timedelta(hours=1)
        last_interaction = now - timedelta(minutes=45)
        assert recovery_phase(now, last_update, last_interaction) is RecoveryPhase.RECOVERING
        assert recovery_hours_due(now, last_update, last_interaction) == pytest.approx(1.0)

    def test_no_interaction_counts_as_cleared_cooldown(self, now):
        last_update = now - timedelta(minutes=15)
        assert recovery_hours_due(now, last_update, None) == pytest.approx(0.25)
