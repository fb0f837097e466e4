"""Embedding provider: remote embeddings API with a deterministic local fallback."""

from __future__ import annotations

import hashlib
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

import httpx
import numpy as np
import structlog

from prompt_vault.config import get_settings
from prompt_vault.core.errors import ExternalServiceError

logger = structlog.get_logger()

LOCAL_MODEL = "local-hash-v1"
DEFAULT_DIMENSION = 384

_SENTENCE_END = re.compile(r"[.!?]")


@dataclass
class Embedding:
    """A vector plus the name of the model that produced it."""
    vector: list[float]
    model: str

    @property
    def dimension(self) -> int:
        return len(self.vector)


def to_float32(values: Sequence[float]) -> list[float]:
    """Round values through float32 so they survive storage byte-for-byte."""
    return np.asarray(values, dtype=np.float32).tolist()


def _bucket(token: str, dimension: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dimension


def local_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> list[float]:
    """Derive a unit-length feature vector from text without any network call.

    Each token lands in a hashed bucket weighted by its position, with its
    length and character diversity spilled into the two following slots.
    The first three slots also carry document length, word count and
    sentence count. Same input, same output. Empty text gives zeros.
    """
    vector = [0.0] * dimension
    if not text or not text.strip():
        return vector

    tokens = text.lower().split()
    for i, token in enumerate(tokens):
        p = _bucket(token, dimension)
        vector[p] += 1.0 / (i + 1)
        vector[(p + 1) % dimension] += 0.1 * len(token)
        vector[(p + 2) % dimension] += 0.2 * len(set(token))

    vector[0] += 0.001 * len(text)
    vector[1 % dimension] += 0.01 * len(tokens)
    vector[2 % dimension] += 0.1 * len(_SENTENCE_END.findall(text))

    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return to_float32(vector)
    return to_float32([v / norm for v in vector])


class EmbeddingProvider:
    """Produces embeddings through an OpenAI-compatible API.

    Without an API key, or when the API call fails in any way, the local
    hash embedding is returned instead. ``embed`` never raises.
    """

    def __init__(
        self,
        api_key: str = "",
        api_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        timeout: float = 10.0,
        dimension: int = DEFAULT_DIMENSION,
        max_chars: int = 8000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.dimension = dimension
        self.max_chars = max_chars
        self.transport = transport

    @property
    def remote_enabled(self) -> bool:
        return bool(self.api_key)

    def fallback(self, text: str) -> Embedding:
        return Embedding(vector=local_embedding(text, self.dimension), model=LOCAL_MODEL)

    async def embed(self, text: str) -> Embedding:
        if not self.remote_enabled or not text.strip():
            return self.fallback(text)
        try:
            vector = await self._request(text[: self.max_chars])
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning("embedding.fallback", model=self.model, error=str(e))
            return self.fallback(text)
        return Embedding(vector=vector, model=self.model)

    async def _request(self, text: str) -> list[float]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(
                f"{self.api_url}/embeddings",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model, "input": text, "dimensions": self.dimension},
            )
            resp.raise_for_status()
            data = resp.json()

        try:
            values = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Malformed embedding response") from e
        if not isinstance(values, list) or not values:
            raise ExternalServiceError("Embedding response contained no vector")
        if len(values) != self.dimension:
            raise ExternalServiceError(
                f"Embedding has {len(values)} dimensions, expected {self.dimension}"
            )
        return to_float32(values)


@lru_cache
def get_embedding_provider() -> EmbeddingProvider:
    """Get cached embedding provider configured from settings."""
    settings = get_settings()
    return EmbeddingProvider(
        api_key=settings.openai_api_key,
        api_url=settings.embedding_api_url,
        model=settings.embedding_model,
        timeout=settings.embedding_timeout,
        dimension=settings.embedding_dimension,
        max_chars=settings.embedding_max_chars,
    )
