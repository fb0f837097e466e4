"""Pydantic request/response models for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# --- Prompts ---


class PromptCreate(BaseModel):
    """Create a new prompt."""

    title: str = Field(..., min_length=1, max_length=500)
    content: str = Field(..., min_length=1)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)


class PromptUpdate(BaseModel):
    """Partial update; only fields present in the request body change."""

    title: str | None = Field(None, min_length=1, max_length=500)
    content: str | None = Field(None, min_length=1)
    category: str | None = None
    tags: list[str] | None = None
    change_reason: str | None = None


class PromptResponse(BaseModel):
    """Prompt response."""

    id: str
    title: str
    content: str
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class DeleteAllResponse(BaseModel):
    deleted: int


# --- Versions ---


class VersionResponse(BaseModel):
    """Snapshot of a prompt before one of its changes."""

    id: str
    prompt_id: str
    version_number: int
    title: str
    content: str
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    change_reason: str | None = None
    created_at: datetime


class RestoreRequest(BaseModel):
    change_reason: str | None = None


# --- Search ---


class SearchRequest(BaseModel):
    """Search query.

    Without ``limit``, lexical search returns every match and the other
    modes return ten results.
    """

    query: str = ""
    category: str | None = None
    limit: int | None = Field(None, ge=1, le=100)
    fts_weight: float | None = Field(None, ge=0.0)
    semantic_weight: float | None = Field(None, ge=0.0)


class SearchResultResponse(PromptResponse):
    """A prompt plus whichever scores the search produced."""

    search_type: str | None = None
    search_rank: float | None = None
    similarity: float | None = None
    fts_score: float | None = None
    semantic_score: float | None = None
    hybrid_score: float | None = None
    scores: dict[str, float] | None = None


# --- Embeddings ---


class EmbeddingResponse(BaseModel):
    prompt_id: str
    success: bool
    model: str | None = None
    dimension: int | None = None


class EmbeddingBatchItem(BaseModel):
    id: str
    title: str
    success: bool


class EmbeddingBatchResponse(BaseModel):
    """Outcome of regenerating every embedding."""

    successful: int
    failed: int
    results: list[EmbeddingBatchItem] = Field(default_factory=list)


# --- Categories ---


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryResponse(BaseModel):
    id: str
    name: str
    color: str
    created_at: datetime


# --- Suggestions ---


class SuggestionRequest(BaseModel):
    content: str
    category: str | None = None


class SuggestionResponse(BaseModel):
    """Improvement ideas for a prompt, from the LLM or the fallback heuristics."""

    improvements: list[str]
    readability_score: int
    suggestions: dict[str, Any]
    estimated_tokens: int


# --- Export / import ---


class ExportResponse(BaseModel):
    prompts: list[PromptResponse]
    categories: list[CategoryResponse]


class ImportRequest(BaseModel):
    prompts: list[dict[str, Any]] = Field(default_factory=list)
    categories: list[dict[str, Any]] = Field(default_factory=list)


class ImportResponse(BaseModel):
    prompts: int
    categories: int
