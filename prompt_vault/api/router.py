"""Main API router: aggregates all endpoint modules."""

from fastapi import APIRouter

from prompt_vault.api.categories import router as categories_router
from prompt_vault.api.embeddings import router as embeddings_router
from prompt_vault.api.prompts import router as prompts_router
from prompt_vault.api.search import router as search_router
from prompt_vault.api.suggestions import router as suggestions_router
from prompt_vault.api.transfer import router as transfer_router
from prompt_vault.api.versions import router as versions_router

api_router = APIRouter()

api_router.include_router(prompts_router, prefix="/prompts", tags=["prompts"])
api_router.include_router(versions_router, prefix="/prompts", tags=["versions"])
api_router.include_router(embeddings_router, tags=["embeddings"])
api_router.include_router(search_router, prefix="/search", tags=["search"])
api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
api_router.include_router(suggestions_router, prefix="/suggestions", tags=["suggestions"])
api_router.include_router(transfer_router, tags=["transfer"])
