"""Prompt improvement suggestions endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from prompt_vault.api.models import SuggestionRequest, SuggestionResponse
from prompt_vault.core.suggestions import SuggestionService, get_suggestion_service

router = APIRouter()


@router.post("", response_model=SuggestionResponse)
async def suggest(
    data: SuggestionRequest,
    service: SuggestionService = Depends(get_suggestion_service),
) -> SuggestionResponse:
    """Suggest improvements. Falls back to heuristics when the LLM is unavailable."""
    return SuggestionResponse(**await service.suggest(data.content, data.category))
