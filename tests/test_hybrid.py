"""Tests for merging and dispatching searches."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from prompt_vault.core.hybrid import HybridSearch, merge_results


def _hit(prompt_id: str, **scores) -> dict:
    return {"id": prompt_id, "title": prompt_id, "content": "", "tags": [], **scores}


class TestMergeResults:
    def test_weighted_merge(self):
        lexical = [_hit("a", search_rank=9.0), _hit("b", search_rank=5.0)]
        semantic = [_hit("b", similarity=0.9), _hit("c", similarity=0.5)]

        results = merge_results(lexical, semantic)

        assert [r["id"] for r in results] == ["b", "a", "c"]
        by_id = {r["id"]: r for r in results}
        assert by_id["a"]["hybrid_score"] == pytest.approx(0.6)
        assert by_id["b"]["hybrid_score"] == pytest.approx(0.5 * 0.6 + 0.9 * 0.4)
        assert by_id["c"]["hybrid_score"] == pytest.approx(0.2)
        assert by_id["a"]["search_type"] == "fts"
        assert by_id["b"]["search_type"] == "hybrid"
        assert by_id["c"]["search_type"] == "semantic"
        assert by_id["b"]["scores"] == {
            "fts": 0.5,
            "semantic": 0.9,
            "hybrid": by_id["b"]["hybrid_score"],
        }

    def test_no_duplicates(self):
        results = merge_results([_hit("a")], [_hit("a", similarity=0.1)])
        assert len(results) == 1

    def test_order_independent_ties(self):
        semantic = [_hit("b", similarity=0.5), _hit("a", similarity=0.5)]
        assert [r["id"] for r in merge_results([], semantic)] == ["a", "b"]
        assert [r["id"] for r in merge_results([], list(reversed(semantic)))] == ["a", "b"]

    def test_custom_weights_and_limit(self):
        lexical = [_hit("a")]
        semantic = [_hit("b", similarity=0.9)]
        results = merge_results(lexical, semantic, fts_weight=0.0, semantic_weight=1.0, limit=1)
        assert [r["id"] for r in results] == ["b"]

    def test_empty(self):
        assert merge_results([], []) == []


class TestHybridSearch:
    @pytest.mark.asyncio
    async def test_lexical_only_without_embeddings(self, store, lexical, make_prompt):
        make_prompt(title="Email drafter", content="Draft a polite email")
        make_prompt(title="Email summariser", content="Summarise a long email thread")
        semantic = MagicMock()
        semantic.search = AsyncMock()
        engine = HybridSearch(store, lexical, semantic)

        hybrid_results = await engine.hybrid_search("email")
        lexical_results = await engine.lexical_search("email")

        assert [r["id"] for r in hybrid_results] == [r["id"] for r in lexical_results]
        assert {r["search_type"] for r in hybrid_results} == {"fts"}
        semantic.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_merges_when_embeddings_exist(self, hybrid, refresher, make_prompt):
        match = make_prompt(title="Email drafter", content="Draft a polite email")
        other = make_prompt(title="SQL tuner", content="Optimise this slow query")
        for prompt in (match, other):
            await refresher.refresh(prompt["id"])

        results = await hybrid.hybrid_search("email")

        assert results[0]["id"] == match["id"]
        assert results[0]["search_type"] == "hybrid"
        assert {r["id"] for r in results} == {match["id"], other["id"]}

    @pytest.mark.asyncio
    async def test_category_filters_both_sides(self, hybrid, refresher, make_prompt):
        keep = make_prompt(title="Email drafter", content="Draft an email", category="Writing")
        drop = make_prompt(title="Email parser", content="Parse an email", category="Coding")
        for prompt in (keep, drop):
            await refresher.refresh(prompt["id"])

        results = await hybrid.hybrid_search("email", category="Writing")
        assert [r["id"] for r in results] == [keep["id"]]

    @pytest.mark.asyncio
    async def test_search_empty_query_lists_all(self, hybrid, make_prompt):
        make_prompt(title="A", category="Coding")
        make_prompt(title="B", category="Writing")
        assert len(await hybrid.search("")) == 2
        assert [p["title"] for p in await hybrid.search("  ", category="Coding")] == ["A"]

    @pytest.mark.asyncio
    async def test_search_dispatches_to_hybrid(self, hybrid, make_prompt):
        make_prompt(title="Socratic tutor")
        results = await hybrid.search("soc")
        assert [r["title"] for r in results] == ["Socratic tutor"]
        assert results[0]["search_type"] == "fts"
