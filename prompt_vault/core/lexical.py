"""Lexical search. FTS5 matching with a field-weighted, recency-aware score."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import structlog

from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

TITLE_WEIGHT = 4.0
TAGS_WEIGHT = 3.0
CONTENT_WEIGHT = 2.0
CATEGORY_WEIGHT = 1.0
AGE_PENALTY_PER_DAY = 0.1
RELEVANCE_WEIGHT = 10.0

_WORD = re.compile(r"\w+")


def build_match_expression(query: str) -> str | None:
    """Turn free text into a safe FTS5 MATCH expression.

    Every word token is quoted so that FTS operators in user input are
    literal; the last one becomes a prefix query. Returns None when the
    query has no word tokens.

    >>> build_match_expression("soc")
    '"soc"*'
    """
    tokens = _WORD.findall(query or "")
    if not tokens:
        return None
    quoted = [f'"{token}"' for token in tokens]
    quoted[-1] += "*"
    return " ".join(quoted)


def score_match(
    prompt: dict[str, Any],
    query: str,
    bm25: float,
    now: datetime,
    include_tags: bool = True,
) -> float:
    """Weighted score for one full-text hit.

    ``bm25`` is the raw FTS5 value (more negative is more relevant).
    """
    needle = query.strip().rstrip("*").strip().lower()
    score = 0.0
    if needle:
        if needle in (prompt.get("title") or "").lower():
            score += TITLE_WEIGHT
        if include_tags and needle in ",".join(prompt.get("tags") or []).lower():
            score += TAGS_WEIGHT
        if needle in (prompt.get("content") or "").lower():
            score += CONTENT_WEIGHT
        if needle in (prompt.get("category") or "").lower():
            score += CATEGORY_WEIGHT

    age_days = (now - prompt["updated_at"]).total_seconds() / 86400
    score -= AGE_PENALTY_PER_DAY * age_days
    score += RELEVANCE_WEIGHT * -bm25
    return score


class LexicalSearch:
    """Full-text search over the prompt collection."""

    def __init__(self, store: PromptStore, index_tags: bool | None = None) -> None:
        self.store = store
        self.index_tags = store.index_tags if index_tags is None else index_tags

    def search(
        self,
        query: str,
        category: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching prompts, best first, each with ``search_rank``."""
        expression = build_match_expression(query)
        if expression is None:
            return []

        now = datetime.now(timezone.utc)
        results = []
        for prompt, bm25 in self.store.full_text_matches(expression, category):
            result = dict(prompt)
            result["search_rank"] = score_match(prompt, query, bm25, now, self.index_tags)
            result["search_type"] = "fts"
            results.append(result)

        results.sort(key=lambda r: (r["search_rank"], r["updated_at"]), reverse=True)
        if limit is not None:
            results = results[:limit]

        logger.debug("search.lexical", query=query, category=category, hits=len(results))
        return results


@lru_cache
def get_lexical_search() -> LexicalSearch:
    """Get cached lexical search instance."""
    return LexicalSearch(get_store())
