"""Error taxonomy shared by the store, the core services and the API layer."""

from __future__ import annotations


class PromptVaultError(ValueError):
    """Base class for every failure the core reports to its callers."""


class InvalidInputError(PromptVaultError):
    """Empty or malformed identifier or required field."""


class NotFoundError(PromptVaultError):
    """An identifier resolved to zero records."""


class AmbiguousIdError(PromptVaultError):
    """An identifier prefix matched more than one record."""

    def __init__(self, prefix: str, matches: int) -> None:
        super().__init__(
            f'Ambiguous ID prefix "{prefix}". {matches} prompts found. Please be more specific.'
        )
        self.prefix = prefix
        self.matches = matches


class VersionNotFoundError(NotFoundError):
    """The requested version number does not exist for the prompt."""

    def __init__(self, prompt_id: str, version_number: int) -> None:
        super().__init__(f"Version {version_number} not found for prompt {prompt_id}")
        self.prompt_id = prompt_id
        self.version_number = version_number


class DimensionMismatchError(PromptVaultError):
    """Two embedding vectors have different lengths (model skew in stored data)."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Embedding dimensions differ: {left} != {right}")
        self.left = left
        self.right = right


class DuplicateCategoryError(PromptVaultError):
    """A category with the same name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Category '{name}' already exists")
        self.name = name


class ExternalServiceError(PromptVaultError):
    """The embedding or suggestion provider failed.

    Raised inside the provider clients only; they catch it and fall back.
    """
