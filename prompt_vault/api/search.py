"""Search endpoints: default, lexical, semantic and hybrid."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from prompt_vault.api.models import SearchRequest, SearchResultResponse
from prompt_vault.core.hybrid import HybridSearch, get_hybrid_search

router = APIRouter()

DEFAULT_LIMIT = 10


@router.post("", response_model=list[SearchResultResponse])
async def search(
    data: SearchRequest,
    engine: HybridSearch = Depends(get_hybrid_search),
) -> list[SearchResultResponse]:
    """Hybrid search, or every prompt when the query is empty."""
    results = await engine.search(
        data.query, category=data.category, limit=data.limit or DEFAULT_LIMIT
    )
    return [SearchResultResponse(**r) for r in results]


@router.post("/fts", response_model=list[SearchResultResponse])
async def lexical_search(
    data: SearchRequest,
    engine: HybridSearch = Depends(get_hybrid_search),
) -> list[SearchResultResponse]:
    results = await engine.lexical_search(data.query, category=data.category, limit=data.limit)
    return [SearchResultResponse(**r) for r in results]


@router.post("/semantic", response_model=list[SearchResultResponse])
async def semantic_search(
    data: SearchRequest,
    engine: HybridSearch = Depends(get_hybrid_search),
) -> list[SearchResultResponse]:
    results = await engine.semantic_search(data.query, limit=data.limit or DEFAULT_LIMIT)
    return [SearchResultResponse(**r) for r in results]


@router.post("/hybrid", response_model=list[SearchResultResponse])
async def hybrid_search(
    data: SearchRequest,
    engine: HybridSearch = Depends(get_hybrid_search),
) -> list[SearchResultResponse]:
    results = await engine.hybrid_search(
        data.query,
        category=data.category,
        limit=data.limit or DEFAULT_LIMIT,
        fts_weight=data.fts_weight,
        semantic_weight=data.semantic_weight,
    )
    return [SearchResultResponse(**r) for r in results]
