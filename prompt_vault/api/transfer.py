"""Export and import of the whole collection."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from prompt_vault.api.models import (
    CategoryResponse,
    ExportResponse,
    ImportRequest,
    ImportResponse,
    PromptResponse,
)
from prompt_vault.core.registry import PromptRegistry, get_registry

router = APIRouter()


@router.get("/export", response_model=ExportResponse)
async def export_data(
    registry: PromptRegistry = Depends(get_registry),
) -> ExportResponse:
    data = registry.export_data()
    return ExportResponse(
        prompts=[PromptResponse(**p) for p in data["prompts"]],
        categories=[CategoryResponse(**c) for c in data["categories"]],
    )


@router.post("/import", response_model=ImportResponse)
async def import_data(
    data: ImportRequest,
    registry: PromptRegistry = Depends(get_registry),
) -> ImportResponse:
    """Upsert prompts by id and categories by name."""
    return ImportResponse(**registry.import_data(data.model_dump()))
