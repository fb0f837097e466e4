"""Identifier resolution: turns a full prompt id or a unique prefix into an id."""

from __future__ import annotations

from functools import lru_cache

import structlog

from prompt_vault.core.errors import AmbiguousIdError, InvalidInputError, NotFoundError
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

FULL_ID_LENGTH = 36


class PromptResolver:
    """Resolves user-supplied identifiers (full UUIDs or short prefixes) to prompt ids."""

    def __init__(self, store: PromptStore) -> None:
        self.store = store

    def resolve(self, identifier: str | None) -> str:
        """Resolve an identifier to exactly one prompt id.

        - 36 characters: exact lookup.
        - Shorter: prefix lookup, which must match a single prompt.
        - Empty, blank or longer than a UUID: rejected.
        """
        if identifier is None or not identifier.strip():
            raise InvalidInputError("Prompt identifier is required")
        identifier = identifier.strip()

        if len(identifier) > FULL_ID_LENGTH:
            raise InvalidInputError(f"Invalid prompt identifier '{identifier}'")

        if len(identifier) == FULL_ID_LENGTH:
            if self.store.get_prompt(identifier) is None:
                raise NotFoundError(f"Prompt '{identifier}' not found")
            return identifier

        matches = self.store.find_prompt_ids(identifier)
        if not matches:
            raise NotFoundError(f"No prompt found with ID starting with '{identifier}'")
        if len(matches) > 1:
            logger.info("resolver.ambiguous", prefix=identifier, matches=len(matches))
            raise AmbiguousIdError(identifier, len(matches))
        return matches[0]


@lru_cache
def get_resolver() -> PromptResolver:
    """Get cached resolver instance."""
    return PromptResolver(get_store())
