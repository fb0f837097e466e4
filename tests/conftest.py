"""Test fixtures: temporary SQLite store and the services built on it."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from prompt_vault.core.embeddings import EmbeddingProvider
from prompt_vault.core.hybrid import HybridSearch
from prompt_vault.core.lexical import LexicalSearch
from prompt_vault.core.refresher import EmbeddingRefresher
from prompt_vault.core.registry import PromptRegistry
from prompt_vault.core.resolver import PromptResolver
from prompt_vault.core.semantic import SemanticSearch
from prompt_vault.core.suggestions import SuggestionService
from prompt_vault.core.vcs import VersionControl
from prompt_vault.db.store import PromptStore


@pytest.fixture
def store(tmp_path) -> PromptStore:
    """Fresh file-backed store for each test."""
    store = PromptStore(f"sqlite:///{tmp_path / 'prompts.db'}")
    store.init_schema()
    yield store
    store.dispose()


@pytest.fixture
def tagless_store(tmp_path) -> PromptStore:
    """Store whose full-text index leaves tags out."""
    store = PromptStore(f"sqlite:///{tmp_path / 'tagless.db'}", index_tags=False)
    store.init_schema()
    yield store
    store.dispose()


@pytest.fixture
def resolver(store) -> PromptResolver:
    return PromptResolver(store)


@pytest.fixture
def registry(store, resolver) -> PromptRegistry:
    return PromptRegistry(store, resolver)


@pytest.fixture
def vcs(store, resolver) -> VersionControl:
    return VersionControl(store, resolver)


@pytest.fixture
def provider() -> EmbeddingProvider:
    """Provider without an API key, so always the local embedding."""
    return EmbeddingProvider()


@pytest.fixture
def refresher(store, provider) -> EmbeddingRefresher:
    return EmbeddingRefresher(store, provider, max_retries=2, retry_delay=0, batch_delay=0)


@pytest.fixture
def lexical(store) -> LexicalSearch:
    return LexicalSearch(store)


@pytest.fixture
def semantic(store, provider) -> SemanticSearch:
    return SemanticSearch(store, provider)


@pytest.fixture
def hybrid(store, lexical, semantic) -> HybridSearch:
    return HybridSearch(store, lexical, semantic)


@pytest.fixture
def make_prompt(registry):
    """Create a prompt with sensible defaults."""

    def _make(title: str = "Test prompt", content: str = "Some content", **kwargs: Any) -> dict:
        return registry.create_prompt(title=title, content=content, **kwargs)

    return _make


@pytest.fixture
def app(store, resolver, registry, vcs, refresher, hybrid):
    """FastAPI test app wired to the temporary store."""
    from prompt_vault.core.hybrid import get_hybrid_search
    from prompt_vault.core.refresher import get_refresher
    from prompt_vault.core.registry import get_registry
    from prompt_vault.core.resolver import get_resolver
    from prompt_vault.core.suggestions import get_suggestion_service
    from prompt_vault.core.vcs import get_vcs
    from prompt_vault.main import app as _app

    suggestions = SuggestionService()

    _app.dependency_overrides[get_registry] = lambda: registry
    _app.dependency_overrides[get_vcs] = lambda: vcs
    _app.dependency_overrides[get_resolver] = lambda: resolver
    _app.dependency_overrides[get_refresher] = lambda: refresher
    _app.dependency_overrides[get_hybrid_search] = lambda: hybrid
    _app.dependency_overrides[get_suggestion_service] = lambda: suggestions

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """HTTP test client."""
    return TestClient(app)
