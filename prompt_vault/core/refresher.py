"""Embedding refresher: keeps prompt embeddings in step with their content.

Writes schedule a refresh and return immediately; a single background
worker drains the queue. Until it has run, semantic search may still see
the previous embedding (lexical search is always current).
"""

from __future__ import annotations

import asyncio
import contextlib
from functools import lru_cache
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from prompt_vault.config import get_settings
from prompt_vault.core.embeddings import EmbeddingProvider, get_embedding_provider
from prompt_vault.db.store import PromptStore, get_store

logger = structlog.get_logger()

RETRY_DELAY_SECONDS = 2.0  # multiplied by attempt number


def embedding_text(prompt: dict[str, Any]) -> str:
    return f"{prompt['title']} {prompt['content']}"


class EmbeddingRefresher:
    """Background queue plus the retrying refresh routine it runs."""

    def __init__(
        self,
        store: PromptStore,
        provider: EmbeddingProvider,
        max_retries: int = 3,
        retry_delay: float = RETRY_DELAY_SECONDS,
        batch_delay: float = 1.0,
    ) -> None:
        self.store = store
        self.provider = provider
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.batch_delay = batch_delay
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[str] | None = None
        self._worker: asyncio.Task | None = None

    async def refresh(self, prompt_id: str) -> bool:
        """Embed a prompt and store the vector, retrying store failures.

        Returns False if the prompt no longer exists or every attempt failed.
        """
        for attempt in range(self.max_retries):
            try:
                prompt = await asyncio.to_thread(self.store.get_prompt, prompt_id)
                if prompt is None:
                    logger.warning("embedding.prompt_missing", prompt_id=prompt_id)
                    return False

                embedding = await self.provider.embed(embedding_text(prompt))
                await asyncio.to_thread(
                    self.store.save_embedding, prompt_id, embedding.vector, embedding.model
                )
                logger.info("embedding.refreshed", prompt_id=prompt_id, model=embedding.model)
                return True
            except SQLAlchemyError as e:
                logger.error(
                    "embedding.refresh_error",
                    prompt_id=prompt_id,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))

        logger.error("embedding.refresh_failed", prompt_id=prompt_id, attempts=self.max_retries)
        return False

    # ------------------------------------------------------------------
    # Background worker
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return (
            self._worker is not None
            and not self._worker.done()
            and self._loop is not None
            and not self._loop.is_closed()
        )

    def start(self) -> None:
        """Start the worker on the running event loop."""
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = self._loop.create_task(self._run())
        logger.info("embedding.worker_started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        self._queue = None
        self._loop = None
        logger.info("embedding.worker_stopped")

    async def join(self) -> None:
        """Wait until every scheduled refresh has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def schedule(self, prompt_id: str) -> None:
        """Queue a refresh without waiting for it.

        Safe to call from the worker's loop or from any other thread. With
        no event loop at all the refresh runs inline.
        """
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if self.running and self._queue is not None and self._loop is not None:
            if current is self._loop:
                self._queue.put_nowait(prompt_id)
            else:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, prompt_id)
            logger.debug("embedding.scheduled", prompt_id=prompt_id)
            return

        if current is None:
            asyncio.run(self.refresh(prompt_id))
            return

        self.start()
        self._queue.put_nowait(prompt_id)
        logger.debug("embedding.scheduled", prompt_id=prompt_id)

    async def _run(self) -> None:
        queue = self._queue
        while True:
            prompt_id = await queue.get()
            try:
                await self.refresh(prompt_id)
            except Exception as e:
                logger.error("embedding.worker_error", prompt_id=prompt_id, error=str(e))
            finally:
                queue.task_done()

    # ------------------------------------------------------------------
    # Explicit regeneration
    # ------------------------------------------------------------------

    async def regenerate(self, prompt_id: str) -> dict[str, Any]:
        """Refresh one prompt now and report what was stored."""
        success = await self.refresh(prompt_id)
        embedding = None
        if success:
            embedding = await asyncio.to_thread(self.store.get_embedding, prompt_id)
        return {
            "prompt_id": prompt_id,
            "success": success,
            "model": embedding["model"] if embedding else None,
            "dimension": embedding["dimension"] if embedding else None,
        }

    async def regenerate_all(self) -> dict[str, Any]:
        """Re-embed every prompt, one at a time, pausing between items."""
        prompts = await asyncio.to_thread(self.store.list_prompts)
        results = []
        successful = 0
        for index, prompt in enumerate(prompts):
            if index and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
            success = await self.refresh(prompt["id"])
            successful += int(success)
            results.append({"id": prompt["id"], "title": prompt["title"], "success": success})

        failed = len(prompts) - successful
        logger.info("embedding.regenerated_all", successful=successful, failed=failed)
        return {"successful": successful, "failed": failed, "results": results}


@lru_cache
def get_refresher() -> EmbeddingRefresher:
    """Get cached refresher configured from settings."""
    settings = get_settings()
    return EmbeddingRefresher(
        get_store(),
        get_embedding_provider(),
        max_retries=settings.embedding_max_retries,
        batch_delay=settings.embedding_batch_delay,
    )
