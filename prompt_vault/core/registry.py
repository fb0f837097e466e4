"""Prompt Registry: create, read and delete prompts; categories; export and import."""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import structlog

from prompt_vault.core.errors import InvalidInputError, NotFoundError
from prompt_vault.core.refresher import EmbeddingRefresher, get_refresher
from prompt_vault.core.resolver import PromptResolver, get_resolver
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

DEFAULT_CATEGORIES = (
    ("Writing", "#10B981"),
    ("Coding", "#8B5CF6"),
    ("Analysis", "#F59E0B"),
    ("Creative", "#EF4444"),
    ("General", "#6B7280"),
)


def _require_text(value: Any, field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"Prompt {field} is required")
    return value


def _parse_timestamp(value: Any) -> datetime | None:
    """Accept datetimes or ISO-8601 strings (a trailing ``Z`` included)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidInputError(f"Invalid timestamp '{value}'") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class PromptRegistry:
    """Manages the prompt collection outside of versioned edits."""

    def __init__(
        self,
        store: PromptStore,
        resolver: PromptResolver,
        refresher: EmbeddingRefresher | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.refresher = refresher

    def create_prompt(
        self,
        title: str,
        content: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create a prompt. Its version history starts empty."""
        _require_text(title, "title")
        _require_text(content, "content")

        prompt = self.store.insert_prompt(
            {
                "title": title,
                "content": content,
                "category": category or None,
                "tags": tags or [],
            }
        )
        logger.info("prompt.created", prompt_id=prompt["id"], category=prompt["category"])
        self._schedule_refresh(prompt["id"])
        return prompt

    def get_prompt(self, identifier: str) -> dict[str, Any]:
        """Get a prompt by full id or unique prefix."""
        prompt_id = self.resolver.resolve(identifier)
        prompt = self.store.get_prompt(prompt_id)
        if prompt is None:
            raise NotFoundError(f"Prompt '{identifier}' not found")
        return prompt

    def list_prompts(self, category: str | None = None) -> list[dict[str, Any]]:
        """List prompts, most recently updated first."""
        return self.store.list_prompts(category)

    def delete_prompt(self, identifier: str) -> bool:
        """Delete a prompt with its versions and embedding."""
        prompt_id = self.resolver.resolve(identifier)
        deleted = self.store.delete_prompt(prompt_id)
        if deleted:
            logger.info("prompt.deleted", prompt_id=prompt_id)
        return deleted

    def delete_all_prompts(self) -> int:
        count = self.store.delete_all_prompts()
        logger.warning("prompt.deleted_all", count=count)
        return count

    # --- Categories ---

    def list_categories(self) -> list[dict[str, Any]]:
        return self.store.list_categories()

    def create_category(self, name: str, color: str | None = None) -> dict[str, Any]:
        if not name or not name.strip():
            raise InvalidInputError("Category name is required")
        category = self.store.insert_category(name.strip(), color)
        logger.info("category.created", name=category["name"], color=category["color"])
        return category

    def seed_default_categories(self) -> int:
        """Insert any missing default categories. Returns how many were added."""
        added = 0
        for name, color in DEFAULT_CATEGORIES:
            if self.store.get_category(name) is None:
                self.store.insert_category(name, color)
                added += 1
        if added:
            logger.info("category.seeded", added=added)
        return added

    # --- Export / import ---

    def export_data(self) -> dict[str, Any]:
        return {
            "prompts": self.store.list_prompts(),
            "categories": self.store.list_categories(),
        }

    def import_data(self, payload: dict[str, Any]) -> dict[str, int]:
        """Upsert prompts by id and categories by name.

        Existing prompts keep their version history; imported ones start
        with none. The whole import is one transaction.
        """
        if not isinstance(payload, dict):
            raise InvalidInputError("Import payload must be an object")
        prompts = payload.get("prompts") or []
        categories = payload.get("categories") or []
        if not isinstance(prompts, list) or not isinstance(categories, list):
            raise InvalidInputError("'prompts' and 'categories' must be lists")

        imported_ids = []
        with self.store.transaction() as session:
            for category in categories:
                if not isinstance(category, dict) or not category.get("name"):
                    raise InvalidInputError("Every imported category needs a name")
                self.store.upsert_category(category, session=session)

            for item in prompts:
                if not isinstance(item, dict):
                    raise InvalidInputError("Every imported prompt must be an object")
                record = {
                    "id": item.get("id"),
                    "title": _require_text(item.get("title"), "title"),
                    "content": _require_text(item.get("content"), "content"),
                    "category": item.get("category") or None,
                    "tags": item.get("tags") or [],
                    "created_at": _parse_timestamp(item.get("created_at")),
                    "updated_at": _parse_timestamp(item.get("updated_at")),
                }
                imported_ids.append(self.store.upsert_prompt(record, session=session)["id"])

        for prompt_id in imported_ids:
            self._schedule_refresh(prompt_id)

        logger.info("data.imported", prompts=len(imported_ids), categories=len(categories))
        return {"prompts": len(imported_ids), "categories": len(categories)}

    def _schedule_refresh(self, prompt_id: str) -> None:
        if self.refresher is not None:
            self.refresher.schedule(prompt_id)


@lru_cache
def get_registry() -> PromptRegistry:
    """Get cached registry instance."""
    return PromptRegistry(get_store(), get_resolver(), get_refresher())
