"""Tests for identifier resolution."""

from __future__ import annotations

import pytest

from prompt_vault.core.errors import AmbiguousIdError, InvalidInputError, NotFoundError

ID_A = "aaaaaaaa-0000-4000-8000-000000000001"
ID_B = "aaaaaaaa-0000-4000-8000-000000000002"
ID_C = "cccccccc-0000-4000-8000-000000000003"


@pytest.fixture
def seeded(store):
    for prompt_id in (ID_A, ID_B, ID_C):
        store.insert_prompt({"id": prompt_id, "title": "T", "content": "C"})
    return store


class TestPromptResolver:
    def test_full_id(self, seeded, resolver):
        assert resolver.resolve(ID_A) == ID_A

    def test_full_id_not_found(self, seeded, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("dddddddd-0000-4000-8000-000000000004")

    def test_unique_prefix(self, seeded, resolver):
        assert resolver.resolve("cccc") == ID_C

    def test_prefix_whitespace_is_stripped(self, seeded, resolver):
        assert resolver.resolve("  cccc  ") == ID_C

    def test_ambiguous_prefix(self, seeded, resolver):
        with pytest.raises(AmbiguousIdError, match="2 prompts found") as exc_info:
            resolver.resolve("aaaaaaaa")
        assert exc_info.value.matches == 2

    def test_prefix_not_found(self, seeded, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("ffff")

    def test_wildcards_are_literal(self, seeded, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve("%")

    @pytest.mark.parametrize("identifier", [None, "", "   "])
    def test_empty(self, resolver, identifier):
        with pytest.raises(InvalidInputError):
            resolver.resolve(identifier)

    def test_too_long(self, resolver):
        with pytest.raises(InvalidInputError):
            resolver.resolve(ID_A + "0")
