"""API client for the PromptVault REST API."""

from __future__ import annotations

from typing import Any

import httpx


class VaultClient:
    """HTTP client wrapping the PromptVault API endpoints."""

    def __init__(self, base_url: str = "http://localhost:5001", timeout: float = 60.0) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=f"{self.base_url}/api/v1", timeout=timeout)

    def _handle(self, resp: httpx.Response) -> Any:
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise RuntimeError(f"API error ({resp.status_code}): {detail}")
        if resp.status_code == 204:
            return None
        return resp.json()

    # --- Prompts ---

    def list_prompts(self, category: str | None = None) -> list[dict]:
        params = {"category": category} if category else {}
        return self._handle(self._client.get("/prompts", params=params))

    def create_prompt(self, data: dict) -> dict:
        return self._handle(self._client.post("/prompts", json=data))

    def get_prompt(self, prompt_id: str) -> dict:
        return self._handle(self._client.get(f"/prompts/{prompt_id}"))

    def update_prompt(self, prompt_id: str, data: dict) -> dict:
        return self._handle(self._client.put(f"/prompts/{prompt_id}", json=data))

    def delete_prompt(self, prompt_id: str) -> None:
        self._handle(self._client.delete(f"/prompts/{prompt_id}"))

    # --- Versions ---

    def list_versions(self, prompt_id: str) -> list[dict]:
        return self._handle(self._client.get(f"/prompts/{prompt_id}/versions"))

    def get_version(self, prompt_id: str, version_number: int) -> dict:
        return self._handle(self._client.get(f"/prompts/{prompt_id}/versions/{version_number}"))

    def restore_version(self, prompt_id: str, version_number: int, reason: str | None = None) -> dict:
        body = {"change_reason": reason} if reason else None
        return self._handle(
            self._client.post(f"/prompts/{prompt_id}/restore/{version_number}", json=body)
        )

    # --- Search ---

    def search(self, query: str, mode: str = "hybrid", **params: Any) -> list[dict]:
        path = "/search" if mode == "default" else f"/search/{mode}"
        body = {"query": query, **{k: v for k, v in params.items() if v is not None}}
        return self._handle(self._client.post(path, json=body))

    # --- Embeddings ---

    def regenerate_embedding(self, prompt_id: str) -> dict:
        return self._handle(self._client.post(f"/prompts/{prompt_id}/embedding"))

    def regenerate_all_embeddings(self) -> dict:
        return self._handle(self._client.post("/embeddings/generate-all"))

    # --- Categories ---

    def list_categories(self) -> list[dict]:
        return self._handle(self._client.get("/categories"))

    def create_category(self, name: str, color: str | None = None) -> dict:
        body: dict[str, Any] = {"name": name}
        if color:
            body["color"] = color
        return self._handle(self._client.post("/categories", json=body))

    # --- Suggestions ---

    def suggest(self, content: str, category: str | None = None) -> dict:
        return self._handle(
            self._client.post("/suggestions", json={"content": content, "category": category})
        )

    # --- Export / import ---

    def export_data(self) -> dict:
        return self._handle(self._client.get("/export"))

    def import_data(self, payload: dict) -> dict:
        return self._handle(self._client.post("/import", json=payload))
