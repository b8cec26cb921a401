"""
REST API Routes for the Social Battery.

All responses use the response envelope (see src/api/schemas.py).

Endpoints (all under /api/v1 prefix):
- /health - Health check
- /interactions - Log and list social interactions
- /dashboard - Dashboard metrics
- /limits - Personal limits
- /patterns - Pattern analysis report
- /recommendations - Current recovery recommendations
- /battery/level - Manual level override
- /battery/recovery-rate - Passive recovery rate
- /assistant - Free-text questions
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Literal

from fastapi import APIRouter as FastAPIRouter
from fastapi import Depends, status

from src.api.dependencies import get_assistant, get_store
from src.api.schemas import (
    AssistantRequest,
    LogInteractionRequest,
    UpdateLevelRequest,
    UpdateRecoveryRateRequest,
    success_response,
)
from src.config.battery import RECENT_INTERACTIONS_FOR_RECOMMENDATIONS
from src.services.assistant import SocialBatteryAssistant
from src.services.recommendation_engine import recommend
from src.services.social_battery import compute_drain
from src.services.state_store import SocialBatteryStore

logger = logging.getLogger(__name__)

router = FastAPIRouter(prefix="/api/v1")


# =============================================================================
# Health
# =============================================================================


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return success_response({"status": "ok"})


# =============================================================================
# Interactions
# =============================================================================


@router.post("/interactions", status_code=status.HTTP_201_CREATED)
async def log_interaction(
    data: LogInteractionRequest,
    store: SocialBatteryStore = Depends(get_store),
) -> dict[str, Any]:
    """
    Log a social interaction.

    The committed battery level is the supplied energy_after. The computed
    drain is returned for display only.

    Returns:
        Envelope with the interaction, its drain and the new battery state
    """
    interaction = await store.log_interaction(data.model_dump(exclude_none=True))
    return success_response({
        "interaction": interaction.to_dict(),
        "drain": compute_drain(interaction),
        "battery": store.battery.to_dict(),
    })


@router.get("/interactions")
async def list_interactions(
    scope: Literal["today", "week", "all"] = "all",
    store: SocialBatteryStore = Depends(get_store),
) -> dict[str, Any]:
    """List interactions logged today, this week (Sunday-based) or ever."""
    if scope == "today":
        interactions = store.get_today_interactions()
    elif scope == "week":
        interactions = store.get_weekly_interactions()
    else:
        interactions = list(store.interactions)
    return success_response({
        "scope": scope,
        "interactions": [i.to_dict() for i in interactions],
    })


# =============================================================================
# Read models
# =============================================================================


@router.get("/dashboard")
async def get_dashboard(store: SocialBatteryStore = Depends(get_store)) -> dict[str, Any]:
    """Dashboard metrics plus the derived weekly stats."""
    return success_response({
        "metrics": store.get_dashboard_metrics().to_dict(),
        "weekly_stats": store.battery.weekly_stats.to_dict(),
    })


@router.get("/limits")
async def get_limits(store: SocialBatteryStore = Depends(get_store)) -> dict[str, Any]:
    return success_response(store.get_personal_limits().to_dict())


@router.get("/patterns")
async def get_patterns(store: SocialBatteryStore = Depends(get_store)) -> dict[str, Any]:
    """Run the pattern analyzer over the interaction history."""
    analysis = store.analyze_patterns()
    return success_response({
        "analysis_date": analysis.analysis_date,
        "start_date": analysis.start_date,
        "end_date": analysis.end_date,
        "days_analyzed": analysis.days_analyzed,
        "patterns": [p.to_dict() for p in analysis.patterns],
        "insights": dataclasses.asdict(analysis.insights) if analysis.insights else None,
        "summary": dataclasses.asdict(analysis.summary) if analysis.summary else None,
    })


@router.get("/recommendations")
async def get_recommendations(store: SocialBatteryStore = Depends(get_store)) -> dict[str, Any]:
    """Recommendations from the last commit, or fresh ones before the first."""
    recommendations = list(store.recommendations)
    if not recommendations:
        recommendations = recommend(
            store.battery.current_level,
            store.interactions[-RECENT_INTERACTIONS_FOR_RECOMMENDATIONS:],
            store.now().hour,
        )
    return success_response({"recommendations": [r.to_dict() for r in recommendations]})


# =============================================================================
# Battery commands
# =============================================================================


@router.put("/battery/level")
async def update_level(
    data: UpdateLevelRequest,
    store: SocialBatteryStore = Depends(get_store),
) -> dict[str, Any]:
    battery = await store.update_energy_level(data.level)
    return success_response(battery.to_dict())


@router.put("/battery/recovery-rate")
async def update_recovery_rate(
    data: UpdateRecoveryRateRequest,
    store: SocialBatteryStore = Depends(get_store),
) -> dict[str, Any]:
    battery = await store.update_recovery_rate(data.rate)
    return success_response(battery.to_dict())


# =============================================================================
# Assistant
# =============================================================================


@router.post("/assistant")
async def ask_assistant(
    data: AssistantRequest,
    assistant: SocialBatteryAssistant = Depends(get_assistant),
) -> dict[str, Any]:
    reply = await assistant.ask(data.question)
    return success_response({"reply": reply})
