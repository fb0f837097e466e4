"""Hybrid search: merges lexical and semantic rankings into one list."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

import structlog

from prompt_vault.config import get_settings
from prompt_vault.core.lexical import LexicalSearch, get_lexical_search
from prompt_vault.core.semantic import SemanticSearch, get_semantic_search
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

PROMPT_FIELDS = ("id", "title", "content", "category", "tags", "created_at", "updated_at")


def merge_results(
    lexical: list[dict[str, Any]],
    semantic: list[dict[str, Any]],
    fts_weight: float = 0.6,
    semantic_weight: float = 0.4,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Combine two ranked lists by prompt id.

    Lexical hits are rank-normalised (the i-th of N scores 1 - i/N),
    semantic hits keep their cosine similarity. A prompt missing from one
    side scores 0 there. Sorted by hybrid score, ties by id, so the output
    does not depend on which search finished first.
    """
    merged: dict[str, dict[str, Any]] = {}
    sources: dict[str, set[str]] = {}

    def entry_for(item: dict[str, Any]) -> dict[str, Any]:
        if item["id"] not in merged:
            entry = {field: item.get(field) for field in PROMPT_FIELDS}
            entry["fts_score"] = 0.0
            entry["semantic_score"] = 0.0
            merged[item["id"]] = entry
            sources[item["id"]] = set()
        return merged[item["id"]]

    total = len(lexical)
    for i, item in enumerate(lexical):
        entry = entry_for(item)
        entry["fts_score"] = 1 - i / total
        entry["search_rank"] = item.get("search_rank")
        sources[item["id"]].add("fts")

    for item in semantic:
        entry = entry_for(item)
        entry["semantic_score"] = item["similarity"]
        entry["similarity"] = item["similarity"]
        sources[item["id"]].add("semantic")

    results = []
    for prompt_id, entry in merged.items():
        found_in = sources[prompt_id]
        entry["hybrid_score"] = (
            entry["fts_score"] * fts_weight + entry["semantic_score"] * semantic_weight
        )
        entry["search_type"] = "hybrid" if len(found_in) > 1 else next(iter(found_in))
        entry["scores"] = {
            "fts": entry["fts_score"],
            "semantic": entry["semantic_score"],
            "hybrid": entry["hybrid_score"],
        }
        results.append(entry)

    results.sort(key=lambda r: (-r["hybrid_score"], r["id"]))
    return results[:limit]


class HybridSearch:
    """Entry point for every search mode.

    The lexical engine is synchronous and runs in a worker thread; the
    semantic engine awaits the embedding provider.
    """

    def __init__(
        self,
        store: PromptStore,
        lexical: LexicalSearch,
        semantic: SemanticSearch,
        fts_weight: float = 0.6,
        semantic_weight: float = 0.4,
    ) -> None:
        self.store = store
        self.lexical = lexical
        self.semantic = semantic
        self.fts_weight = fts_weight
        self.semantic_weight = semantic_weight

    async def lexical_search(
        self,
        query: str,
        category: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.lexical.search, query, category, limit)

    async def semantic_search(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        return await self.semantic.search(query, limit)

    async def hybrid_search(
        self,
        query: str,
        category: str | None = None,
        limit: int = 10,
        fts_weight: float | None = None,
        semantic_weight: float | None = None,
    ) -> list[dict[str, Any]]:
        """Weighted merge of both engines.

        With no stored embeddings at all, the query is not embedded and the
        lexical results are returned as they are.
        """
        fts_weight = self.fts_weight if fts_weight is None else fts_weight
        semantic_weight = self.semantic_weight if semantic_weight is None else semantic_weight

        embedded = await asyncio.to_thread(self.store.count_embeddings)
        if embedded == 0:
            logger.info("search.hybrid_lexical_only", query=query)
            return await self.lexical_search(query, category, limit)

        lexical_results, semantic_results = await asyncio.gather(
            self.lexical_search(query, category),
            self.semantic_search(query, limit * 2),
        )
        if category:
            semantic_results = [r for r in semantic_results if r.get("category") == category]

        results = merge_results(
            lexical_results,
            semantic_results,
            fts_weight=fts_weight,
            semantic_weight=semantic_weight,
            limit=limit,
        )
        logger.info(
            "search.hybrid",
            query=query,
            lexical_hits=len(lexical_results),
            semantic_hits=len(semantic_results),
            returned=len(results),
        )
        return results

    async def search(
        self,
        query: str | None,
        category: str | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Default search: list everything for an empty query, hybrid otherwise."""
        if not query or not query.strip():
            return await asyncio.to_thread(self.store.list_prompts, category)
        return await self.hybrid_search(query, category=category, limit=limit)


@lru_cache
def get_hybrid_search() -> HybridSearch:
    """Get cached hybrid search instance."""
    settings = get_settings()
    return HybridSearch(
        get_store(),
        get_lexical_search(),
        get_semantic_search(),
        fts_weight=settings.fts_weight,
        semantic_weight=settings.semantic_weight,
    )
