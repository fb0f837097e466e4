"""Prompt CRUD endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from prompt_vault.api.models import (
    DeleteAllResponse,
    PromptCreate,
    PromptResponse,
    PromptUpdate,
)
from prompt_vault.core.registry import PromptRegistry, get_registry
from prompt_vault.core.vcs import VersionControl, get_vcs

router = APIRouter()


@router.post("", response_model=PromptResponse, status_code=201)
async def create_prompt(
    data: PromptCreate,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptResponse:
    """Create a new prompt. Its history starts empty."""
    prompt = registry.create_prompt(
        title=data.title,
        content=data.content,
        category=data.category,
        tags=data.tags,
    )
    return PromptResponse(**prompt)


@router.get("", response_model=list[PromptResponse])
async def list_prompts(
    category: str | None = None,
    registry: PromptRegistry = Depends(get_registry),
) -> list[PromptResponse]:
    """List prompts, most recently updated first."""
    return [PromptResponse(**p) for p in registry.list_prompts(category)]


@router.delete("", response_model=DeleteAllResponse)
async def delete_all_prompts(
    registry: PromptRegistry = Depends(get_registry),
) -> DeleteAllResponse:
    """Delete every prompt."""
    return DeleteAllResponse(deleted=registry.delete_all_prompts())


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: str,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptResponse:
    """Get a prompt by id or unique id prefix."""
    return PromptResponse(**registry.get_prompt(prompt_id))


@router.put("/{prompt_id}", response_model=PromptResponse)
async def update_prompt(
    prompt_id: str,
    data: PromptUpdate,
    vcs: VersionControl = Depends(get_vcs),
) -> PromptResponse:
    """Update a prompt. The previous state is kept as a new version."""
    changes = data.model_dump(exclude_unset=True)
    reason = changes.pop("change_reason", None)
    prompt = vcs.update(prompt_id, changes, reason=reason)
    return PromptResponse(**prompt)


@router.delete("/{prompt_id}", status_code=204)
async def delete_prompt(
    prompt_id: str,
    registry: PromptRegistry = Depends(get_registry),
) -> None:
    """Delete a prompt together with its versions and embedding."""
    if not registry.delete_prompt(prompt_id):
        raise HTTPException(status_code=404, detail=f"Prompt '{prompt_id}' not found")
