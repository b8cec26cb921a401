"""
Integration tests for the Social Battery REST API.

Tests the full HTTP request/response cycle using httpx AsyncClient
against the actual FastAPI application. The store runs on an in-memory
blob store and the fake clock; the assistant uses deterministic replies.

Covers:
- Health endpoint (root + versioned)
- Logging interactions (drain, committed level, rejected input)
- Listing interactions by scope
- Dashboard, limits, patterns, recommendations
- Manual level and recovery rate commands
- Assistant endpoint
- Error response format (API envelope)
"""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api import create_app
from src.config.battery import BatterySettings
from src.lib.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(store):
    return create_app(settings=BatterySettings(), store=store)


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the app (lifespan not started)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def _assert_envelope(body: dict, success: bool = True) -> None:
    assert set(body) == {"success", "data", "error", "meta"}
    assert body["success"] is success
    assert "timestamp" in body["meta"]


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    @pytest.mark.asyncio
    async def test_root_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_versioned_health(self, client):
        response = await client.get("/api/v1/health")
        body = response.json()
        _assert_envelope(body)
        assert body["data"] == {"status": "ok"}


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------


class TestInteractions:
    @pytest.mark.asyncio
    async def test_log_interaction(self, client, interaction_payload):
        response = await client.post("/api/v1/interactions", json=interaction_payload)

        assert response.status_code == 201
        body = response.json()
        _assert_envelope(body)
        data = body["data"]
        assert data["drain"] == pytest.approx(10.4)
        assert data["battery"]["current_level"] == pytest.approx(64.6)
        assert data["battery"]["last_interaction_id"] == data["interaction"]["id"]
        assert data["interaction"]["type"] == "work_meeting"
        assert data["interaction"]["timestamp"] == "2024-06-12T14:00:00+00:00"

    @pytest.mark.asyncio
    async def test_blank_notes_are_dropped(self, client, interaction_payload):
        response = await client.post(
            "/api/v1/interactions",
            json={**interaction_payload, "notes": "   ", "location": " office "},
        )
        interaction = response.json()["data"]["interaction"]
        assert "notes" not in interaction
        assert interaction["location"] == "office"

    @pytest.mark.asyncio
    async def test_out_of_range_is_rejected(self, client, store, interaction_payload):
        response = await client.post("/api/v1/interactions", json={**interaction_payload, "intensity": 11})

        assert response.status_code == 422
        body = response.json()
        _assert_envelope(body, success=False)
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["errors"][0]["field"] == "intensity"
        assert store.interactions == ()

    @pytest.mark.asyncio
    async def test_infinite_duration_is_rejected(self, client, store, interaction_payload):
        body = json.dumps({**interaction_payload, "duration": float("inf")})
        assert '"duration": Infinity' in body

        response = await client.post(
            "/api/v1/interactions",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["details"]["errors"][0]["field"] == "duration"
        assert store.interactions == ()

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected(self, client, interaction_payload):
        response = await client.post("/api/v1/interactions", json={**interaction_payload, "type": "karaoke"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_by_scope(self, client, interaction_payload, now):
        for offset in (timedelta(hours=1), timedelta(days=2), timedelta(days=5)):
            await client.post(
                "/api/v1/interactions",
                json={**interaction_payload, "timestamp": (now - offset).isoformat()},
            )

        counts = {}
        for scope in ("today", "week", "all"):
            response = await client.get("/api/v1/interactions", params={"scope": scope})
            counts[scope] = len(response.json()["data"]["interactions"])
        assert counts == {"today": 1, "week": 2, "all": 3}

    @pytest.mark.asyncio
    async def test_invalid_scope(self, client):
        response = await client.get("/api/v1/interactions", params={"scope": "year"})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class TestReadModels:
    @pytest.mark.asyncio
    async def test_dashboard_defaults(self, client):
        data = (await client.get("/api/v1/dashboard")).json()["data"]

        metrics = data["metrics"]
        assert metrics["current_social_battery"] == 75
        assert metrics["today_interaction_time"] == 0
        assert metrics["energy_trend"] == "stable"
        assert metrics["risk_level"] == "low"
        assert data["weekly_stats"]["most_draining_day"] == "Monday"

    @pytest.mark.asyncio
    async def test_limits_defaults(self, client):
        data = (await client.get("/api/v1/limits")).json()["data"]
        assert data == {
            "daily_interaction_limit": 240,
            "weekly_interaction_limit": 1200,
            "recovery_time_needed": 8,
            "optimal_social_level": 70,
        }

    @pytest.mark.asyncio
    async def test_patterns_without_history(self, client):
        data = (await client.get("/api/v1/patterns")).json()["data"]
        assert data["patterns"] == []
        assert data["days_analyzed"] == 0
        assert data["insights"] is None
        assert data["summary"]["total_potential_improvement"] == 0

    @pytest.mark.asyncio
    async def test_patterns_with_history(self, client, interaction_payload, now):
        for days_ago in range(7, 0, -1):
            await client.post("/api/v1/interactions", json={
                **interaction_payload,
                "type": "solo_time",
                "context": "personal",
                "energy_before": 80,
                "energy_after": 85,
                "timestamp": (now - timedelta(days=days_ago)).isoformat(),
            })

        data = (await client.get("/api/v1/patterns")).json()["data"]
        ids = {p["id"] for p in data["patterns"]}
        assert "isolation-pattern" in ids
        assert data["days_analyzed"] == 6
        assert data["insights"]["current_trend"] == "stable"

    @pytest.mark.asyncio
    async def test_recommendations_before_first_commit(self, client):
        data = (await client.get("/api/v1/recommendations")).json()["data"]
        assert [r["id"] for r in data["recommendations"]] == ["personal-effective"]

    @pytest.mark.asyncio
    async def test_recommendations_at_critical_level(self, client, interaction_payload):
        await client.post("/api/v1/interactions", json={**interaction_payload, "energy_after": 20})

        dashboard = (await client.get("/api/v1/dashboard")).json()["data"]
        recommendations = (await client.get("/api/v1/recommendations")).json()["data"]["recommendations"]

        assert dashboard["metrics"]["risk_level"] == "critical"
        assert len(recommendations) == 4
        assert [r["priority"] for r in recommendations[:3]] == ["urgent"] * 3


# ---------------------------------------------------------------------------
# Battery commands
# ---------------------------------------------------------------------------


class TestBatteryCommands:
    @pytest.mark.asyncio
    async def test_set_level(self, client):
        response = await client.put("/api/v1/battery/level", json={"level": 42})
        assert response.json()["data"]["current_level"] == 42

    @pytest.mark.asyncio
    async def test_level_out_of_range(self, client):
        response = await client.put("/api/v1/battery/level", json={"level": 150})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_set_recovery_rate(self, client):
        response = await client.put("/api/v1/battery/recovery-rate", json={"rate": 5})
        assert response.json()["data"]["recovery_rate"] == 5


# ---------------------------------------------------------------------------
# Assistant
# ---------------------------------------------------------------------------


class TestAssistant:
    @pytest.mark.asyncio
    async def test_ask(self, client):
        response = await client.post("/api/v1/assistant", json={"question": "How am I doing?"})
        assert response.status_code == 200
        assert "75%" in response.json()["data"]["reply"]

    @pytest.mark.asyncio
    async def test_empty_question(self, client):
        response = await client.post("/api/v1/assistant", json={"question": ""})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unhandled_error_returns_internal_error():
    broken = Mock()
    broken.get_personal_limits.side_effect = RuntimeError("boom")
    app = create_app(settings=BatterySettings(), store=broken)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/limits")

    assert response.status_code == 500
    body = response.json()
    _assert_envelope(body, success=False)
    assert body["error"]["code"] == "INTERNAL_ERROR"


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client):
    response = await client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    body = response.json()
    _assert_envelope(body, success=False)
    assert body["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_wrong_method_uses_envelope(client):
    response = await client.delete("/api/v1/dashboard")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_domain_validation_error_reports_field(store):
    broken = Mock(wraps=store)
    broken.update_energy_level.side_effect = ValidationError("level must be a number", field="level")
    app = create_app(settings=BatterySettings(), store=broken)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.put("/api/v1/battery/level", json={"level": 10})

    assert response.status_code == 422
    assert response.json()["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "level must be a number",
        "details": {"field": "level"},
    }


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_lifespan_closes_store_on_shutdown(app, store):
    store.close = AsyncMock()

    async with app.router.lifespan_context(app):
        store.close.assert_not_awaited()

    store.close.assert_awaited_once()
