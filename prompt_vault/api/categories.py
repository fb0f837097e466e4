"""Category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from prompt_vault.api.models import CategoryCreate, CategoryResponse
from prompt_vault.core.registry import PromptRegistry, get_registry

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    registry: PromptRegistry = Depends(get_registry),
) -> list[CategoryResponse]:
    return [CategoryResponse(**c) for c in registry.list_categories()]


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    registry: PromptRegistry = Depends(get_registry),
) -> CategoryResponse:
    """Create a category. Names are unique."""
    return CategoryResponse(**registry.create_category(data.name, data.color))
