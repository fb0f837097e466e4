"""Embedding regeneration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from prompt_vault.api.models import EmbeddingBatchResponse, EmbeddingResponse
from prompt_vault.core.refresher import EmbeddingRefresher, get_refresher
from prompt_vault.core.resolver import PromptResolver, get_resolver

router = APIRouter()


@router.post("/prompts/{prompt_id}/embedding", response_model=EmbeddingResponse)
async def regenerate_embedding(
    prompt_id: str,
    resolver: PromptResolver = Depends(get_resolver),
    refresher: EmbeddingRefresher = Depends(get_refresher),
) -> EmbeddingResponse:
    """Re-embed one prompt and wait for the result."""
    result = await refresher.regenerate(resolver.resolve(prompt_id))
    return EmbeddingResponse(**result)


@router.post("/embeddings/generate-all", response_model=EmbeddingBatchResponse)
async def regenerate_all_embeddings(
    refresher: EmbeddingRefresher = Depends(get_refresher),
) -> EmbeddingBatchResponse:
    """Re-embed every prompt sequentially. Slow by design on large collections."""
    return EmbeddingBatchResponse(**await refresher.regenerate_all())
