"""Version history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from prompt_vault.api.models import PromptResponse, RestoreRequest, VersionResponse
from prompt_vault.core.vcs import VersionControl, get_vcs

router = APIRouter()


@router.get("/{prompt_id}/versions", response_model=list[VersionResponse])
async def list_versions(
    prompt_id: str,
    vcs: VersionControl = Depends(get_vcs),
) -> list[VersionResponse]:
    """Version history, newest first."""
    return [VersionResponse(**v) for v in vcs.history(prompt_id)]


@router.get("/{prompt_id}/versions/{version_number}", response_model=VersionResponse)
async def get_version(
    prompt_id: str,
    version_number: int,
    vcs: VersionControl = Depends(get_vcs),
) -> VersionResponse:
    return VersionResponse(**vcs.get_version(prompt_id, version_number))


@router.post("/{prompt_id}/restore/{version_number}", response_model=PromptResponse)
async def restore_version(
    prompt_id: str,
    version_number: int,
    data: RestoreRequest | None = Body(None),
    vcs: VersionControl = Depends(get_vcs),
) -> PromptResponse:
    """Restore a prompt to an earlier version; the replaced state becomes a new version."""
    reason = data.change_reason if data else None
    prompt = vcs.restore(prompt_id, version_number, reason=reason)
    return PromptResponse(**prompt)
