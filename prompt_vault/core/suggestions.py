"""Suggestion service: asks an LLM how to improve a prompt, with a heuristic fallback."""

from __future__ import annotations

import json
import math
import re
from functools import lru_cache
from typing import Any

import httpx
import structlog

from prompt_vault.config import get_settings
from prompt_vault.core.errors import ExternalServiceError, InvalidInputError

logger = structlog.get_logger()

ANTHROPIC_VERSION = "2023-06-01"
MIN_CONTENT_LENGTH = 10

DEFAULT_SUGGESTIONS = {
    "clarity": "Consider breaking down complex instructions into bullet points",
    "specificity": "Add more context about the expected output format",
    "constraints": "Specify any limitations or requirements for the response",
}

_FENCE = re.compile(r"```(?:json)?\n?")

ANALYSIS_PROMPT = """Analyze this prompt and provide suggestions for improvement. Return your response as JSON with the following structure:

{{
  "improvements": ["suggestion1", "suggestion2", "suggestion3"],
  "readabilityScore": 85,
  "suggestions": {{
    "clarity": "specific clarity suggestion",
    "specificity": "specific specificity suggestion",
    "constraints": "specific constraints suggestion"
  }}
}}

Prompt to analyze:
Category: {category}
Content: {content}

Focus on:
1. How to make the prompt clearer and more specific
2. What examples or constraints could be added
3. A readability score from 1-100
4. Specific actionable improvements"""


def readability_score(content: str) -> int:
    return min(100, max(40, 100 - len(content) // 20))


def estimated_tokens(content: str) -> int:
    return math.ceil(len(content) / 4)


def fallback_suggestions(content: str, category: str | None = None) -> dict[str, Any]:
    """Length and word-count heuristics used whenever the LLM is unavailable."""
    improvements = [
        "Consider expanding your prompt with more specific details"
        if len(content) < 50
        else "Consider adding specific examples to make the prompt more concrete",
        "Add more context about what you want to achieve"
        if len(content.split()) < 10
        else "You might want to specify the desired output format",
        "Try adding constraints or limitations to get more focused responses",
    ]
    return {
        "improvements": improvements,
        "readability_score": readability_score(content),
        "suggestions": dict(DEFAULT_SUGGESTIONS),
        "estimated_tokens": estimated_tokens(content),
    }


def parse_llm_answer(text: str, content: str) -> dict[str, Any]:
    """Parse the model's JSON answer, filling gaps with heuristic values.

    Raises ExternalServiceError when the text is not JSON or has no
    improvements list.
    """
    cleaned = _FENCE.sub("", text).strip()
    try:
        answer = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExternalServiceError("Suggestion response is not valid JSON") from e

    if not isinstance(answer, dict) or not isinstance(answer.get("improvements"), list):
        raise ExternalServiceError("Suggestion response has no improvements list")

    score = answer.get("readability_score", answer.get("readabilityScore"))
    if not isinstance(score, (int, float)) or isinstance(score, bool):
        score = readability_score(content)
    elif isinstance(score, float) and not math.isfinite(score):
        score = readability_score(content)
    score = min(100, max(1, int(score)))

    suggestions = answer.get("suggestions")
    if not isinstance(suggestions, dict):
        suggestions = dict(DEFAULT_SUGGESTIONS)

    return {
        "improvements": [str(item) for item in answer["improvements"]],
        "readability_score": score,
        "suggestions": suggestions,
        "estimated_tokens": estimated_tokens(content),
    }


class SuggestionService:
    """Client for the Anthropic Messages API.

    ``suggest`` only raises for content that is too short; every service
    failure turns into the heuristic answer.
    """

    def __init__(
        self,
        api_key: str = "",
        api_url: str = "https://api.anthropic.com/v1",
        model: str = "claude-sonnet-4-20250514",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def suggest(self, content: str, category: str | None = None) -> dict[str, Any]:
        if not content or len(content.strip()) < MIN_CONTENT_LENGTH:
            raise InvalidInputError(
                f"Content must be at least {MIN_CONTENT_LENGTH} characters long"
            )

        if not self.api_key:
            logger.info("suggestions.fallback", reason="no_api_key")
            return fallback_suggestions(content, category)

        try:
            text = await self._call_llm(content, category)
            result = parse_llm_answer(text, content)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("suggestions.fallback", reason="llm_failed", error=str(e))
            return fallback_suggestions(content, category)

        logger.info("suggestions.generated", model=self.model, improvements=len(result["improvements"]))
        return result

    async def _call_llm(self, content: str, category: str | None) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(
                f"{self.api_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                json={
                    "model": self.model,
                    "max_tokens": 1000,
                    "messages": [
                        {
                            "role": "user",
                            "content": ANALYSIS_PROMPT.format(
                                category=category or "Not specified",
                                content=content,
                            ),
                        }
                    ],
                },
            )
            resp.raise_for_status()
            data = resp.json()

        try:
            text = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Unexpected suggestion response structure") from e
        if not isinstance(text, str) or not text:
            raise ExternalServiceError("Suggestion response contained no text")
        return text


@lru_cache
def get_suggestion_service() -> SuggestionService:
    """Get cached suggestion service configured from settings."""
    settings = get_settings()
    return SuggestionService(
        api_key=settings.anthropic_api_key,
        api_url=settings.anthropic_api_url,
        model=settings.suggestion_model,
        timeout=settings.suggestion_timeout,
    )
