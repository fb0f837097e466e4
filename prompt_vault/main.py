"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prompt_vault.api.router import api_router
from prompt_vault.config import get_settings
from prompt_vault.core.errors import (
    AmbiguousIdError,
    DimensionMismatchError,
    DuplicateCategoryError,
    InvalidInputError,
    NotFoundError,
    PromptVaultError,
)
from prompt_vault.core.refresher import get_refresher
from prompt_vault.core.registry import get_registry
from prompt_vault.db.store import get_store
from prompt_vault.utils.logging import setup_logging

logger = structlog.get_logger()

VERSION = "0.1.0"

# Checked in order; VersionNotFoundError is covered by NotFoundError.
ERROR_STATUS = (
    (InvalidInputError, 400),
    (NotFoundError, 404),
    (AmbiguousIdError, 409),
    (DuplicateCategoryError, 409),
    (DimensionMismatchError, 500),
)


def status_for(exc: PromptVaultError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("promptvault.starting", port=settings.port)

    get_store()
    get_registry().seed_default_categories()
    logger.info("promptvault.store_ready", url=settings.database_url)

    refresher = get_refresher()
    refresher.start()

    yield

    await refresher.stop()
    get_store().dispose()
    logger.info("promptvault.shutdown")


app = FastAPI(
    title="PromptVault",
    description="Prompt library with version history and hybrid search",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(PromptVaultError)
async def prompt_vault_error_handler(request: Request, exc: PromptVaultError) -> JSONResponse:
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.info
    log("api.error", path=request.url.path, status=status, error=str(exc))
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/")
async def root():
    """Service info endpoint."""
    return {"service": "promptvault", "version": VERSION}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "promptvault", "version": VERSION}
