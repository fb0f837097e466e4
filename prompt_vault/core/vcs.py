"""Version Control System: update, restore and history for prompts.

Every mutation first snapshots the prompt as it was, under the next
version number, and then changes the live row. Both writes share one
transaction. A new prompt has an empty history.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import structlog

from prompt_vault.core.errors import InvalidInputError, NotFoundError, VersionNotFoundError
from prompt_vault.core.refresher import EmbeddingRefresher, get_refresher
from prompt_vault.core.resolver import FULL_ID_LENGTH, PromptResolver, get_resolver
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

EDITABLE_FIELDS = ("title", "content", "category", "tags")
DEFAULT_UPDATE_REASON = "Updated prompt"


def validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Keep the editable fields and reject blank titles or content."""
    accepted = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    for field in ("title", "content"):
        if field in accepted and (accepted[field] is None or not str(accepted[field]).strip()):
            raise InvalidInputError(f"Prompt {field} cannot be empty")
    if "tags" in accepted and accepted["tags"] is None:
        accepted["tags"] = []
    return accepted


def _snapshot(prompt: dict[str, Any], version_number: int, reason: str) -> dict[str, Any]:
    return {
        "prompt_id": prompt["id"],
        "version_number": version_number,
        "title": prompt["title"],
        "content": prompt["content"],
        "category": prompt["category"],
        "tags": prompt["tags"],
        "change_reason": reason,
    }


class VersionControl:
    """Append-only version history for prompts."""

    def __init__(
        self,
        store: PromptStore,
        resolver: PromptResolver,
        refresher: EmbeddingRefresher | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.refresher = refresher

    def update(
        self,
        identifier: str,
        changes: dict[str, Any],
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Apply ``changes`` to a prompt, recording its previous state first."""
        prompt_id = self.resolver.resolve(identifier)
        changes = validate_changes(changes)

        with self.store.transaction() as session:
            current = self.store.get_prompt(prompt_id, session=session)
            if current is None:
                raise NotFoundError(f"Prompt '{prompt_id}' not found")
            version_number = self.store.max_version_number(prompt_id, session=session) + 1
            self.store.insert_version(
                _snapshot(current, version_number, reason or DEFAULT_UPDATE_REASON),
                session=session,
            )
            updated = self.store.update_prompt(prompt_id, changes, session=session)

        logger.info(
            "vcs.updated",
            prompt_id=prompt_id,
            version=version_number,
            fields=sorted(changes),
        )
        self._schedule_refresh(prompt_id)
        return updated

    def restore(
        self,
        identifier: str,
        version_number: int,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Bring back the fields of an earlier version.

        The state being replaced is itself saved as the next version, so a
        restore can be undone like any other change.
        """
        prompt_id = self.resolver.resolve(identifier)

        with self.store.transaction() as session:
            target = self.store.get_version(prompt_id, version_number, session=session)
            if target is None:
                raise VersionNotFoundError(prompt_id, version_number)
            current = self.store.get_prompt(prompt_id, session=session)
            if current is None:
                raise NotFoundError(f"Prompt '{prompt_id}' not found")

            snapshot_number = self.store.max_version_number(prompt_id, session=session) + 1
            self.store.insert_version(
                _snapshot(current, snapshot_number, reason or f"Restored to version {version_number}"),
                session=session,
            )
            restored = self.store.update_prompt(
                prompt_id,
                {field: target[field] for field in EDITABLE_FIELDS},
                session=session,
            )

        logger.info(
            "vcs.restored",
            prompt_id=prompt_id,
            restored_version=version_number,
            snapshot_version=snapshot_number,
        )
        self._schedule_refresh(prompt_id)
        return restored

    def history(self, identifier: str) -> list[dict[str, Any]]:
        """Versions of a prompt, newest first.

        A full id is looked up directly, so the (empty) history of a deleted
        prompt is returned rather than an error.
        """
        if identifier and len(identifier.strip()) == FULL_ID_LENGTH:
            return self.store.list_versions(identifier.strip())
        return self.store.list_versions(self.resolver.resolve(identifier))

    def get_version(self, identifier: str, version_number: int) -> dict[str, Any]:
        prompt_id = self.resolver.resolve(identifier)
        version = self.store.get_version(prompt_id, version_number)
        if version is None:
            raise VersionNotFoundError(prompt_id, version_number)
        return version

    def _schedule_refresh(self, prompt_id: str) -> None:
        if self.refresher is not None:
            self.refresher.schedule(prompt_id)


@lru_cache
def get_vcs() -> VersionControl:
    """Get cached VCS instance."""
    return VersionControl(get_store(), get_resolver(), get_refresher())
