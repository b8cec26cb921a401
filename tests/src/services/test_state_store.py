"""
Tests for the social battery state store.

Covers:
- reduce() for every command
- Logging an interaction (level = energy_after, derived state, recommendations)
- Rejected input never reaches the log
- Recovery ticks through the store (tick window, drain cooldown)
- Persistence round-trip, corrupt blobs, failing writes
"""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest

from src.config.battery import INTERACTIONS_KEY, STATE_KEY
from src.lib.exceptions import PersistenceError, StateError, ValidationError
from src.models.battery import BatteryState, InteractionType, SocialContext
from src.services.persistence import SnapshotRepository
from src.services.social_battery import compute_drain
from src.services.state_store import (
    AddInteraction,
    AppState,
    LoadData,
    ResetState,
    SocialBatteryStore,
    TickRecovery,
    UpdateEnergyLevel,
    UpdateRecoveryRate,
    build_interaction,
    reduce,
)

# =============================================================================
# Reducer
# =============================================================================


class TestReduce:
    def test_add_interaction(self, make_interaction, now):
        interaction = make_interaction(energy_after=65)
        state = reduce(AppState(), AddInteraction(interaction, now))

        assert state.interactions == (interaction,)
        assert state.battery.current_level == 65
        assert state.battery.last_interaction is interaction
        assert state.last_updated_at == now
        assert [r.id for r in state.recommendations] == ["low-hobby", "low-organize", "personal-effective"]
        assert state.battery.weekly_stats.total_interaction_time == 60

    def test_add_interaction_keeps_previous_log(self, make_interaction, now):
        first = make_interaction(id="1")
        second = make_interaction(id="2", energy_after=40)
        state = reduce(AppState(), AddInteraction(first, now))
        new_state = reduce(state, AddInteraction(second, now))

        assert state.interactions == (first,)
        assert new_state.interactions == (first, second)

    @pytest.mark.parametrize("level,expected", [(150, 100), (-5, 0), (42.5, 42.5)])
    def test_update_energy_level_clamps(self, level, expected, now):
        state = reduce(AppState(), UpdateEnergyLevel(level, now))
        assert state.battery.current_level == expected
        assert state.last_updated_at == now

    def test_update_recovery_rate(self, now):
        base = AppState(last_updated_at=now)
        assert reduce(base, UpdateRecoveryRate(12)).battery.recovery_rate == 12
        clamped = reduce(base, UpdateRecoveryRate(-3))
        assert clamped.battery.recovery_rate == 0
        assert clamped.last_updated_at == now

    def test_first_tick_only_starts_the_clock(self, now):
        state = reduce(AppState(), TickRecovery(now))
        assert state.last_updated_at == now
        assert state.battery.current_level == 75

    def test_tick_inside_window_returns_same_state(self, now):
        state = AppState(last_updated_at=now)
        assert reduce(state, TickRecovery(now + timedelta(minutes=10))) is state

    def test_tick_during_drain_cooldown_returns_same_state(self, make_interaction, now):
        interaction = make_interaction(timestamp=now - timedelta(minutes=20))
        state = AppState(
            battery=BatteryState(current_level=50, last_interaction=interaction),
            last_updated_at=now - timedelta(hours=1),
        )
        assert reduce(state, TickRecovery(now)) is state

    def test_tick_applies_recovery(self, now):
        state = AppState(battery=BatteryState(current_level=50), last_updated_at=now - timedelta(hours=2))
        ticked = reduce(state, TickRecovery(now))
        assert ticked.battery.current_level == pytest.approx(66)
        assert ticked.last_updated_at == now

    def test_tick_caps_at_full(self, now):
        state = AppState(battery=BatteryState(current_level=95), last_updated_at=now - timedelta(hours=2))
        assert reduce(state, TickRecovery(now)).battery.current_level == 100

    def test_load_data(self, make_interaction, now):
        log = (make_interaction(id="1", timestamp=now - timedelta(days=1)),)
        state = reduce(AppState(), LoadData(log, 150, -1, log[0], now))

        assert state.interactions == log
        assert state.battery.current_level == 100
        assert state.battery.recovery_rate == 0
        assert state.battery.last_interaction is log[0]
        assert state.last_updated_at == now
        assert state.recommendations == ()

    def test_reset(self, make_interaction, now):
        state = reduce(AppState(), AddInteraction(make_interaction(), now))
        reset = reduce(state, ResetState(recovery_rate=6))

        assert reset.interactions == ()
        assert reset.battery.current_level == 75
        assert reset.battery.recovery_rate == 6
        assert reset.last_updated_at is None

    def test_unknown_command(self):
        with pytest.raises(StateError):
            reduce(AppState(), object())


# =============================================================================
# Input parsing
# =============================================================================


class TestBuildInteraction:
    def test_generates_id_and_default_timestamp(self, interaction_payload, now):
        interaction = build_interaction(interaction_payload, now)
        assert interaction.id.startswith("interaction_")
        assert interaction.timestamp == now
        assert interaction.type is InteractionType.WORK_MEETING
        assert interaction.context is SocialContext.WORK

    def test_ids_are_unique(self, interaction_payload, now):
        assert build_interaction(interaction_payload, now).id != build_interaction(interaction_payload, now).id

    def test_naive_timestamp_is_utc(self, interaction_payload, now):
        interaction = build_interaction({**interaction_payload, "timestamp": "2024-06-12T10:00:00"}, now)
        assert interaction.timestamp.utcoffset() == timedelta(0)
        assert interaction.timestamp.hour == 10

    def test_offset_timestamp_is_converted_to_utc(self, interaction_payload, now):
        interaction = build_interaction({**interaction_payload, "timestamp": "2024-06-12T01:30:00+03:00"}, now)
        assert interaction.timestamp.utcoffset() == timedelta(0)
        assert (interaction.timestamp.day, interaction.timestamp.hour) == (11, 22)

    @pytest.mark.parametrize(
        "override,field",
        [
            ({"intensity": 11}, "intensity"),
            ({"enjoyment": 0}, "enjoyment"),
            ({"duration": 0}, "duration"),
            ({"duration": float("nan")}, "duration"),
            ({"duration": float("inf")}, "duration"),
            ({"energy_after": float("nan")}, "energy_after"),
            ({"energy_after": 101}, "energy_after"),
            ({"people_count": -1}, "people_count"),
            ({"type": "karaoke"}, "type"),
            ({"context": "space"}, "context"),
            ({"timestamp": "yesterday"}, "timestamp"),
            ({"context": None}, "context"),
        ],
    )
    def test_rejects_bad_input(self, interaction_payload, now, override, field):
        with pytest.raises(ValidationError) as exc_info:
            build_interaction({**interaction_payload, **override}, now)
        assert exc_info.value.field == field


# =============================================================================
# Store commands
# =============================================================================


class TestLogInteraction:
    @pytest.mark.asyncio
    async def test_draining_work_meeting(self, store, blob_store, interaction_payload, clock):
        interaction = await store.log_interaction(interaction_payload)

        assert compute_drain(interaction) == pytest.approx(10.4)
        assert store.battery.current_level == pytest.approx(64.6)
        assert store.battery.last_interaction == interaction
        assert store.interactions == (interaction,)
        assert interaction.timestamp == clock.now
        assert [r.id for r in store.recommendations] == ["low-hobby", "low-organize", "personal-effective"]
        assert await blob_store.load(INTERACTIONS_KEY) is not None
        assert await blob_store.load(STATE_KEY) is not None

    @pytest.mark.asyncio
    async def test_rejected_input_commits_nothing(self, store, blob_store, interaction_payload):
        with pytest.raises(ValidationError):
            await store.log_interaction({**interaction_payload, "intensity": 11})

        assert store.interactions == ()
        assert store.battery.current_level == 75
        assert await blob_store.load(INTERACTIONS_KEY) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_duration_is_a_validation_error(self, store, interaction_payload, duration):
        with pytest.raises(ValidationError) as exc_info:
            await store.log_interaction({**interaction_payload, "duration": duration})

        assert exc_info.value.field == "duration"
        assert store.interactions == ()

    @pytest.mark.asyncio
    async def test_critical_level_gets_urgent_recommendations(self, store, interaction_payload):
        await store.log_interaction({**interaction_payload, "energy_after": 20})

        assert store.get_dashboard_metrics().risk_level.value == "critical"
        assert len(store.recommendations) == 4
        assert store.recommendations[0].id == "urgent-solo-time"

    @pytest.mark.asyncio
    async def test_today_and_week_queries(self, store, interaction_payload, now):
        await store.log_interaction({**interaction_payload, "timestamp": now - timedelta(hours=1)})
        await store.log_interaction({**interaction_payload, "timestamp": now - timedelta(days=2)})
        await store.log_interaction({**interaction_payload, "timestamp": now - timedelta(days=5)})

        assert len(store.get_today_interactions()) == 1
        assert len(store.get_weekly_interactions()) == 2
        assert store.get_dashboard_metrics().weekly_interaction_time == 120

    @pytest.mark.asyncio
    async def test_today_uses_utc_days_across_offsets(self, store, interaction_payload):
        await store.log_interaction({**interaction_payload, "timestamp": "2024-06-12T01:30:00+03:00"})
        await store.log_interaction({**interaction_payload, "timestamp": "2024-06-11T21:00:00-05:00"})

        today = store.get_today_interactions()
        assert [i.timestamp.isoformat() for i in today] == ["2024-06-12T02:00:00+00:00"]


class TestBatteryCommands:
    @pytest.mark.asyncio
    async def test_update_energy_level(self, store):
        battery = await store.update_energy_level(120)
        assert battery.current_level == 100

    @pytest.mark.asyncio
    async def test_update_recovery_rate(self, store):
        battery = await store.update_recovery_rate(-2)
        assert battery.recovery_rate == 0

    @pytest.mark.asyncio
    async def test_reset(self, store, interaction_payload):
        await store.log_interaction(interaction_payload)
        await store.reset()

        assert store.interactions == ()
        assert store.battery.current_level == 75
        assert store.battery.recovery_rate == 8


class TestTicks:
    @pytest.mark.asyncio
    async def test_tick_inside_window_is_noop(self, store, clock):
        clock.advance(minutes=10)
        assert await store.tick() is False
        assert store.battery.current_level == 75

    @pytest.mark.asyncio
    async def test_tick_credits_elapsed_hours(self, store, clock):
        clock.advance(hours=2)
        assert await store.tick() is True
        assert store.battery.current_level == pytest.approx(91)

    @pytest.mark.asyncio
    async def test_drain_cooldown(self, store, clock, interaction_payload):
        await store.log_interaction(interaction_payload)

        clock.advance(minutes=20)
        assert await store.tick() is False
        assert store.battery.current_level == pytest.approx(64.6)

        clock.advance(minutes=15)
        assert await store.tick() is True
        assert store.battery.current_level == pytest.approx(64.6 + 8 * 35 / 60)

    @pytest.mark.asyncio
    async def test_full_battery_tick_reports_no_change(self, store, clock):
        await store.update_energy_level(100)
        clock.advance(hours=1)
        assert await store.tick() is False


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    @pytest.mark.asyncio
    async def test_round_trip_restores_dashboard(self, store, blob_store, clock, interaction_payload, now):
        await store.log_interaction({**interaction_payload, "timestamp": now - timedelta(days=1)})
        await store.log_interaction({
            **interaction_payload,
            "type": "solo_time",
            "context": "personal",
            "energy_before": 60,
            "energy_after": 70,
            "notes": "long walk",
        })

        restored = SocialBatteryStore(SnapshotRepository(blob_store), clock=clock)
        await restored.load()

        assert restored.interactions == store.interactions
        assert restored.battery.current_level == store.battery.current_level
        assert restored.battery.last_interaction == store.battery.last_interaction
        assert restored.get_personal_limits() == store.get_personal_limits()
        assert restored.get_dashboard_metrics() == store.get_dashboard_metrics()

    @pytest.mark.asyncio
    async def test_load_does_not_write(self, store, blob_store):
        await store.load()
        assert await blob_store.load(STATE_KEY) is None

    @pytest.mark.asyncio
    async def test_bad_last_interaction_id_discards_state(self, store, blob_store):
        await blob_store.save(STATE_KEY, b'{"current_level": 50, "last_interaction_id": ["x"]}')

        await store.load()

        assert store.battery.current_level == BatteryState().current_level
        assert store.battery.last_interaction is None

    @pytest.mark.asyncio
    async def test_corrupt_log_falls_back_to_defaults(self, store, blob_store):
        await blob_store.save(INTERACTIONS_KEY, b"not json")
        await blob_store.save(STATE_KEY, b'{"current_level": 40, "recovery_rate": 5}')

        await store.load()

        assert store.interactions == ()
        assert store.battery.current_level == 40
        assert store.battery.recovery_rate == 5

    @pytest.mark.asyncio
    async def test_corrupt_state_keeps_log(self, store, blob_store, interaction_payload):
        await store.log_interaction(interaction_payload)
        await blob_store.save(STATE_KEY, b"[1, 2]")

        restored = SocialBatteryStore(SnapshotRepository(blob_store))
        await restored.load()

        assert len(restored.interactions) == 1
        assert restored.battery.current_level == 75
        assert restored.battery.last_interaction is None

    @pytest.mark.asyncio
    async def test_failed_write_is_logged_not_raised(self, clock, interaction_payload, caplog):
        failing = Mock()
        failing.load = AsyncMock(return_value=None)
        failing.save = AsyncMock(side_effect=PersistenceError("disk full"))
        store = SocialBatteryStore(SnapshotRepository(failing), clock=clock)

        await store.log_interaction(interaction_payload)

        assert store.battery.current_level == pytest.approx(64.6)
        assert "Failed to persist social battery snapshot" in caplog.text


# =============================================================================
# Pattern queries
# =============================================================================


@pytest.mark.asyncio
async def test_analyze_patterns_on_empty_store(store):
    report = store.analyze_patterns()
    assert report.patterns == []
    assert report.days_analyzed == 0
    assert store.detect_patterns() == []


@pytest.mark.asyncio
async def test_daily_readings_follow_the_log(store, interaction_payload, now):
    await store.log_interaction({**interaction_payload, "timestamp": now - timedelta(days=2)})
    await store.log_interaction(interaction_payload)
    readings = store.daily_readings()
    assert len(readings) == 3
    assert readings[1].social_interactions == 0
