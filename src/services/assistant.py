"""
Social Battery Assistant.

Answers free-text questions about the user's social energy. The prompt
context is built from the dashboard metrics, personal limits and the
most confident detected pattern. The configured TextGenerator produces
the reply. When it raises ServiceError (an OpenAI failure or empty
completion) the assistant answers with the deterministic generator.
"""

from __future__ import annotations

import logging
from typing import Any

from src.lib.exceptions import ServiceError
from src.services.state_store import SocialBatteryStore
from src.services.text_generator import FallbackTextGenerator, TextGenerator

logger = logging.getLogger(__name__)


class SocialBatteryAssistant:
    """
    Question answering over the battery state.

    Usage:
        assistant = SocialBatteryAssistant(store, create_text_generator(settings))
        reply = await assistant.ask("Why am I so drained on Mondays?")
    """

    def __init__(self, store: SocialBatteryStore, generator: TextGenerator | None = None) -> None:
        self._store = store
        self._fallback = FallbackTextGenerator()
        self._generator = generator or self._fallback

    def build_context(self) -> dict[str, Any]:
        """Snapshot of the data the assistant may talk about."""
        context: dict[str, Any] = self._store.get_dashboard_metrics().to_dict()
        limits = self._store.get_personal_limits()
        context["daily_interaction_limit"] = limits.daily_interaction_limit
        context["optimal_social_level"] = limits.optimal_social_level

        patterns = self._store.detect_patterns()
        if patterns:
            top = max(patterns, key=lambda p: p.confidence)
            context["top_pattern"] = top.description
        return context

    async def ask(self, question: str) -> str:
        context = self.build_context()
        try:
            return await self._generator.generate_response(question, context)
        except ServiceError as exc:
            logger.warning("Text generator failed, using fallback reply: %s", exc)
            return await self._fallback.generate_response(question, context)
