"""Tests for prompt API endpoints."""


def _create(client, **overrides):
    body = {"title": "Test", "content": "Body text", **overrides}
    resp = client.post("/api/v1/prompts", json=body)
    assert resp.status_code == 201
    return resp.json()


class TestPromptAPI:
    def test_create_prompt(self, client):
        data = _create(client, title="Reviewer", category="Coding", tags=["review"])
        assert data["title"] == "Reviewer"
        assert data["category"] == "Coding"
        assert data["tags"] == ["review"]
        assert len(data["id"]) == 36

    def test_create_requires_content(self, client):
        resp = client.post("/api/v1/prompts", json={"title": "No body", "content": ""})
        assert resp.status_code == 422

    def test_create_blank_title(self, client):
        resp = client.post("/api/v1/prompts", json={"title": "   ", "content": "x"})
        assert resp.status_code == 400

    def test_list_prompts(self, client):
        _create(client, title="A", category="Coding")
        _create(client, title="B", category="Writing")
        assert len(client.get("/api/v1/prompts").json()) == 2
        resp = client.get("/api/v1/prompts?category=Writing")
        assert [p["title"] for p in resp.json()] == ["B"]

    def test_get_prompt(self, client):
        created = _create(client)
        resp = client.get(f"/api/v1/prompts/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_get_by_prefix(self, client):
        created = _create(client)
        resp = client.get(f"/api/v1/prompts/{created['id'][:8]}")
        assert resp.json()["id"] == created["id"]

    def test_get_not_found(self, client):
        resp = client.get("/api/v1/prompts/dddddddd-0000-4000-8000-000000000004")
        assert resp.status_code == 404

    def test_get_too_long(self, client):
        resp = client.get("/api/v1/prompts/" + "a" * 40)
        assert resp.status_code == 400

    def test_ambiguous_prefix(self, client, store):
        for suffix in ("1", "2"):
            store.insert_prompt(
                {"id": f"aaaaaaaa-0000-4000-8000-00000000000{suffix}", "title": "T", "content": "C"}
            )
        resp = client.get("/api/v1/prompts/aaaa")
        assert resp.status_code == 409
        assert "2 prompts found" in resp.json()["detail"]

    def test_update_prompt(self, client):
        created = _create(client, content="Original")
        resp = client.put(
            f"/api/v1/prompts/{created['id']}",
            json={"content": "Updated", "change_reason": "update"},
        )
        assert resp.status_code == 200
        assert resp.json()["content"] == "Updated"
        assert resp.json()["title"] == "Test"

    def test_update_can_clear_category(self, client):
        created = _create(client, category="Coding")
        resp = client.put(f"/api/v1/prompts/{created['id']}", json={"category": None})
        assert resp.json()["category"] is None

    def test_delete_prompt(self, client):
        created = _create(client)
        resp = client.delete(f"/api/v1/prompts/{created['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/v1/prompts/{created['id']}").status_code == 404
        assert client.get(f"/api/v1/prompts/{created['id']}/versions").json() == []

    def test_delete_all(self, client):
        _create(client)
        _create(client)
        resp = client.delete("/api/v1/prompts")
        assert resp.json() == {"deleted": 2}

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
