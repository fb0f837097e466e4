"""Tests for version history API endpoints."""

import pytest


@pytest.fixture
def prompt_id(client):
    resp = client.post("/api/v1/prompts", json={"title": "VersionTest", "content": "Original"})
    return resp.json()["id"]


class TestVersionAPI:
    def test_history_empty_after_create(self, client, prompt_id):
        assert client.get(f"/api/v1/prompts/{prompt_id}/versions").json() == []

    def test_update_creates_version(self, client, prompt_id):
        client.put(f"/api/v1/prompts/{prompt_id}", json={"content": "Updated", "change_reason": "update"})
        versions = client.get(f"/api/v1/prompts/{prompt_id}/versions").json()
        assert len(versions) == 1
        assert versions[0]["content"] == "Original"
        assert versions[0]["change_reason"] == "update"

    def test_get_version(self, client, prompt_id):
        client.put(f"/api/v1/prompts/{prompt_id}", json={"content": "Updated"})
        resp = client.get(f"/api/v1/prompts/{prompt_id}/versions/1")
        assert resp.status_code == 200
        assert resp.json()["version_number"] == 1

    def test_get_missing_version(self, client, prompt_id):
        resp = client.get(f"/api/v1/prompts/{prompt_id}/versions/9")
        assert resp.status_code == 404

    def test_restore(self, client, prompt_id):
        client.put(f"/api/v1/prompts/{prompt_id}", json={"content": "Updated"})
        resp = client.post(f"/api/v1/prompts/{prompt_id}/restore/1")
        assert resp.status_code == 200
        assert resp.json()["content"] == "Original"

        versions = client.get(f"/api/v1/prompts/{prompt_id}/versions").json()
        assert [v["version_number"] for v in versions] == [2, 1]
        assert versions[0]["content"] == "Updated"
        assert versions[0]["change_reason"] == "Restored to version 1"

    def test_restore_with_reason(self, client, prompt_id):
        client.put(f"/api/v1/prompts/{prompt_id}", json={"content": "Updated"})
        client.post(f"/api/v1/prompts/{prompt_id}/restore/1", json={"change_reason": "revert"})
        versions = client.get(f"/api/v1/prompts/{prompt_id}/versions").json()
        assert versions[0]["change_reason"] == "revert"

    def test_restore_missing_version(self, client, prompt_id):
        resp = client.post(f"/api/v1/prompts/{prompt_id}/restore/5")
        assert resp.status_code == 404
        assert "Version 5" in resp.json()["detail"]
