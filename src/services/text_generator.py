"""
Text generation for the Social Battery assistant.

The core never depends on a language model succeeding. Every generator
satisfies the same contract:

    await generate_response(prompt, context) -> str

FallbackTextGenerator is deterministic and always available.
OpenAITextGenerator is used when OPENAI_API_KEY is set. It raises
ExternalServiceError when the API fails or returns nothing; the
assistant then answers with the deterministic replies.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

from src.config.battery import BatterySettings
from src.lib.exceptions import ExternalServiceError
from src.models.battery import RiskLevel

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are the assistant of a social battery tracker. You help the user \
understand how social interactions drain and restore their energy, point out patterns \
in their history, and suggest practical recovery steps.

Be friendly, data-driven and concise (2-3 sentences)."""


class TextGenerator(Protocol):
    async def generate_response(self, prompt: str, context: Mapping[str, Any] | None = None) -> str: ...


def _format_context(context: Mapping[str, Any] | None) -> str:
    if not context:
        return ""
    lines = [f"- {key.replace('_', ' ')}: {value}" for key, value in context.items()]
    return "\n\nCurrent user data:\n" + "\n".join(lines)


class FallbackTextGenerator:
    """Deterministic replies built from the battery context only."""

    _RISK_ADVICE: dict[str, str] = {
        RiskLevel.CRITICAL.value: "Your social battery is critically low. Step away for some solo time before your next interaction.",
        RiskLevel.HIGH.value: "Your social battery is running low. Keep the next few hours light and plan a recharge break.",
        RiskLevel.MEDIUM.value: "Your social battery is in the middle range. Short breaks between interactions will help you stay there.",
        RiskLevel.LOW.value: "Your social battery looks healthy. This is a good time for the interactions that matter to you.",
    }

    async def generate_response(self, prompt: str, context: Mapping[str, Any] | None = None) -> str:
        context = context or {}
        risk = str(context.get("risk_level", ""))
        level = context.get("current_social_battery")

        parts: list[str] = []
        if level is not None:
            parts.append(f"Your social battery is at {float(level):.0f}%.")
        parts.append(self._RISK_ADVICE.get(
            risk,
            "Log your interactions to get personalized insights about your social energy.",
        ))
        top_pattern = context.get("top_pattern")
        if top_pattern:
            parts.append(f"One pattern stands out: {top_pattern}.")
        return " ".join(parts)


class OpenAITextGenerator:
    """Chat-completion backed generator."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        client: AsyncOpenAI | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def generate_response(self, prompt: str, context: Mapping[str, Any] | None = None) -> str:
        """
        Ask the chat model, with the battery context in the system prompt.

        Raises:
            ExternalServiceError: If the request fails or the completion is empty
        """
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT + _format_context(context)},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except OpenAIError as exc:
            raise ExternalServiceError(f"OpenAI request failed: {exc}") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise ExternalServiceError("OpenAI returned an empty completion")
        return content


def create_text_generator(settings: BatterySettings) -> TextGenerator:
    """OpenAI generator when an API key is configured, otherwise the fallback."""
    if settings.openai_api_key:
        return OpenAITextGenerator(settings.openai_api_key, model=settings.ai_model)
    logger.info("OPENAI_API_KEY not set, assistant uses deterministic replies")
    return FallbackTextGenerator()
