"""Tests for the vault CLI."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from prompt_vault.cli.main import cli

PROMPT = {
    "id": "aaaaaaaa-0000-4000-8000-000000000001",
    "title": "Socratic tutor",
    "content": "Teach by asking questions",
    "category": "Education",
    "tags": ["teaching", "dialogue"],
    "updated_at": "2025-01-01T00:00:00Z",
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_client():
    with patch("prompt_vault.cli.main.VaultClient") as MockClass:
        client = MagicMock()
        MockClass.return_value = client
        yield client


class TestPromptCommands:
    def test_prompt_list(self, runner, mock_client):
        mock_client.list_prompts.return_value = [PROMPT]
        result = runner.invoke(cli, ["prompt", "list", "--category", "Education"])
        assert result.exit_code == 0
        assert "Socratic tutor" in result.output
        assert "teaching,dialogue" in result.output
        mock_client.list_prompts.assert_called_once_with(category="Education")

    def test_prompt_list_empty(self, runner, mock_client):
        mock_client.list_prompts.return_value = []
        result = runner.invoke(cli, ["prompt", "list"])
        assert "No results." in result.output

    def test_prompt_create(self, runner, mock_client):
        mock_client.create_prompt.return_value = PROMPT
        result = runner.invoke(
            cli,
            ["prompt", "create", "--title", "Socratic tutor", "--content", "Teach", "--tags", "a, b"],
        )
        assert result.exit_code == 0
        mock_client.create_prompt.assert_called_once_with(
            {"title": "Socratic tutor", "content": "Teach", "tags": ["a", "b"]}
        )

    def test_prompt_create_from_stdin(self, runner, mock_client):
        mock_client.create_prompt.return_value = PROMPT
        result = runner.invoke(cli, ["prompt", "create", "--title", "T", "-f", "-"], input="From stdin")
        assert result.exit_code == 0
        assert mock_client.create_prompt.call_args[0][0]["content"] == "From stdin"

    def test_prompt_create_needs_content(self, runner, mock_client):
        result = runner.invoke(cli, ["prompt", "create", "--title", "T"])
        assert result.exit_code != 0
        mock_client.create_prompt.assert_not_called()

    def test_prompt_show(self, runner, mock_client):
        mock_client.get_prompt.return_value = PROMPT
        result = runner.invoke(cli, ["prompt", "show", "aaaa"])
        assert result.exit_code == 0
        assert "Socratic tutor" in result.output
        mock_client.get_prompt.assert_called_once_with("aaaa")

    def test_prompt_update(self, runner, mock_client):
        mock_client.update_prompt.return_value = PROMPT
        result = runner.invoke(cli, ["prompt", "update", "aaaa", "--content", "New", "-m", "tweak"])
        assert result.exit_code == 0
        mock_client.update_prompt.assert_called_once_with(
            "aaaa", {"content": "New", "change_reason": "tweak"}
        )

    def test_prompt_update_nothing(self, runner, mock_client):
        result = runner.invoke(cli, ["prompt", "update", "aaaa"])
        assert result.exit_code != 0
        mock_client.update_prompt.assert_not_called()

    def test_prompt_delete(self, runner, mock_client):
        result = runner.invoke(cli, ["prompt", "delete", "aaaa", "--yes"])
        assert result.exit_code == 0
        mock_client.delete_prompt.assert_called_once_with("aaaa")
        assert "Deleted" in result.output


class TestVersionCommands:
    def test_version_history(self, runner, mock_client):
        mock_client.list_versions.return_value = [
            {
                "version_number": 1,
                "title": "Socratic tutor",
                "change_reason": "tightened wording",
                "created_at": "2025-01-01",
            }
        ]
        result = runner.invoke(cli, ["version", "history", "aaaa"])
        assert result.exit_code == 0
        assert "tightened wording" in result.output

    def test_version_show(self, runner, mock_client):
        mock_client.get_version.return_value = {"version_number": 2, "content": "Old"}
        result = runner.invoke(cli, ["version", "show", "aaaa", "2"])
        assert result.exit_code == 0
        mock_client.get_version.assert_called_once_with("aaaa", 2)

    def test_version_restore(self, runner, mock_client):
        mock_client.restore_version.return_value = PROMPT
        result = runner.invoke(cli, ["version", "restore", "aaaa", "1", "-m", "revert"])
        assert result.exit_code == 0
        mock_client.restore_version.assert_called_once_with("aaaa", 1, "revert")


class TestSearchCommand:
    def test_hybrid_search(self, runner, mock_client):
        mock_client.search.return_value = [
            {**PROMPT, "search_type": "hybrid", "hybrid_score": 0.8123}
        ]
        result = runner.invoke(cli, ["search", "socratic"])
        assert result.exit_code == 0
        assert "0.812" in result.output
        mock_client.search.assert_called_once_with("socratic", mode="hybrid", category=None, limit=10)

    def test_fts_search_json(self, runner, mock_client):
        mock_client.search.return_value = [{**PROMPT, "search_rank": 14.2}]
        result = runner.invoke(cli, ["--format", "json", "search", "soc", "--mode", "fts"])
        assert result.exit_code == 0
        assert json.loads(result.output)[0]["search_rank"] == 14.2


class TestEmbeddingCommands:
    def test_regenerate_one(self, runner, mock_client):
        mock_client.regenerate_embedding.return_value = {"prompt_id": PROMPT["id"], "success": True}
        result = runner.invoke(cli, ["embeddings", "regenerate", "aaaa"])
        assert result.exit_code == 0
        mock_client.regenerate_embedding.assert_called_once_with("aaaa")

    def test_regenerate_all(self, runner, mock_client):
        mock_client.regenerate_all_embeddings.return_value = {"successful": 4, "failed": 1, "results": []}
        result = runner.invoke(cli, ["embeddings", "regenerate", "--all"])
        assert result.exit_code == 0
        assert "Regenerated 4 embeddings (1 failed)" in result.output

    def test_regenerate_needs_target(self, runner, mock_client):
        result = runner.invoke(cli, ["embeddings", "regenerate"])
        assert result.exit_code != 0


class TestOtherCommands:
    def test_category_list(self, runner, mock_client):
        mock_client.list_categories.return_value = [{"name": "Writing", "color": "#10B981"}]
        result = runner.invoke(cli, ["category", "list"])
        assert "#10B981" in result.output

    def test_category_create(self, runner, mock_client):
        mock_client.create_category.return_value = {"name": "Research", "color": "#112233"}
        result = runner.invoke(cli, ["category", "create", "Research", "--color", "#112233"])
        assert result.exit_code == 0
        mock_client.create_category.assert_called_once_with("Research", "#112233")

    def test_suggest(self, runner, mock_client):
        mock_client.suggest.return_value = {
            "improvements": ["Add an example"],
            "readability_score": 77,
            "suggestions": {"clarity": "Be clearer"},
            "estimated_tokens": 12,
        }
        result = runner.invoke(cli, ["suggest", "--content", "Write a poem about rain"])
        assert result.exit_code == 0
        assert "Readability: 77" in result.output
        assert "- Add an example" in result.output
        assert "Clarity: Be clearer" in result.output

    def test_export_to_file(self, runner, mock_client, tmp_path):
        mock_client.export_data.return_value = {"prompts": [PROMPT], "categories": []}
        out = tmp_path / "backup.json"
        result = runner.invoke(cli, ["export", "-o", str(out)])
        assert result.exit_code == 0
        assert json.loads(out.read_text())["prompts"][0]["id"] == PROMPT["id"]

    def test_import(self, runner, mock_client, tmp_path):
        source = tmp_path / "backup.json"
        source.write_text(json.dumps({"prompts": [PROMPT], "categories": []}))
        mock_client.import_data.return_value = {"prompts": 1, "categories": 0}
        result = runner.invoke(cli, ["import", str(source)])
        assert result.exit_code == 0
        assert "Imported 1 prompts and 0 categories" in result.output
