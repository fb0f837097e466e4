"""Semantic search: brute-force cosine similarity over stored embeddings."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any, Sequence

import numpy as np
import structlog

from prompt_vault.core.embeddings import EmbeddingProvider, get_embedding_provider
from prompt_vault.core.errors import DimensionMismatchError
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|). Zero vectors are similar to nothing (0.0)."""
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class SemanticSearch:
    """Ranks prompts by embedding similarity to the query."""

    def __init__(self, store: PromptStore, provider: EmbeddingProvider) -> None:
        self.store = store
        self.provider = provider

    async def search(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        query_embedding = await self.provider.embed(query)
        candidates = await asyncio.to_thread(self.store.list_embeddings)

        results = []
        for prompt, vector in candidates:
            result = dict(prompt)
            result["similarity"] = cosine_similarity(query_embedding.vector, vector)
            result["search_type"] = "semantic"
            results.append(result)

        results.sort(key=lambda r: r["similarity"], reverse=True)
        logger.debug(
            "search.semantic",
            query=query,
            model=query_embedding.model,
            scanned=len(candidates),
        )
        return results[:limit]


@lru_cache
def get_semantic_search() -> SemanticSearch:
    """Get cached semantic search instance."""
    return SemanticSearch(get_store(), get_embedding_provider())
