"""PromptVault CLI: vault command."""

from __future__ import annotations

import json
import sys
from typing import Any

import click

from prompt_vault.cli.client import VaultClient


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(_cell(row.get(c))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(_cell(row.get(c)).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)


def _split_tags(tags: str | None) -> list[str] | None:
    if tags is None:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()]


def _read_content(content: str | None, file_path: str | None) -> str | None:
    """Content from --content, --file, or stdin when --file is '-'."""
    if content is not None:
        return content
    if file_path == "-":
        return sys.stdin.read()
    if file_path:
        with open(file_path) as f:
            return f.read()
    return None


@click.group()
@click.option("--api", default="http://localhost:5001", envvar="VAULT_API", help="API base URL")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def cli(ctx: click.Context, api: str, output_format: str) -> None:
    """PromptVault CLI: manage prompts, versions and search."""
    ctx.ensure_object(dict)
    ctx.obj = VaultClient(base_url=api)
    ctx.meta["output_format"] = output_format


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "json":
        click.echo(json.dumps(data, indent=2, default=str))
    elif isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


# --- Prompt commands ---


@cli.group()
def prompt() -> None:
    """Manage prompts."""


@prompt.command("list")
@click.option("--category", default=None)
@click.pass_context
def prompt_list(ctx: click.Context, category: str | None) -> None:
    """List all prompts."""
    client: VaultClient = ctx.obj
    data = client.list_prompts(category=category)
    _output(ctx, data, ["id", "title", "category", "tags", "updated_at"])


@prompt.command("show")
@click.argument("prompt_id")
@click.pass_context
def prompt_show(ctx: click.Context, prompt_id: str) -> None:
    """Show a prompt. Accepts a full id or a unique prefix."""
    client: VaultClient = ctx.obj
    _output(ctx, client.get_prompt(prompt_id))


@prompt.command("create")
@click.option("--title", required=True)
@click.option("--content", default=None)
@click.option("--file", "-f", "file_path", default=None, help="Read content from a file ('-' for stdin)")
@click.option("--category", default=None)
@click.option("--tags", default="")
@click.pass_context
def prompt_create(
    ctx: click.Context,
    title: str,
    content: str | None,
    file_path: str | None,
    category: str | None,
    tags: str,
) -> None:
    """Create a prompt."""
    client: VaultClient = ctx.obj
    body = _read_content(content, file_path)
    if not body:
        raise click.UsageError("Provide --content or --file")
    data: dict[str, Any] = {"title": title, "content": body, "tags": _split_tags(tags) or []}
    if category:
        data["category"] = category
    _output(ctx, client.create_prompt(data))


@prompt.command("update")
@click.argument("prompt_id")
@click.option("--title", default=None)
@click.option("--content", default=None)
@click.option("--file", "-f", "file_path", default=None, help="Read content from a file ('-' for stdin)")
@click.option("--category", default=None)
@click.option("--tags", default=None)
@click.option("--reason", "-m", default=None, help="Change reason stored with the version")
@click.pass_context
def prompt_update(
    ctx: click.Context,
    prompt_id: str,
    title: str | None,
    content: str | None,
    file_path: str | None,
    category: str | None,
    tags: str | None,
    reason: str | None,
) -> None:
    """Update a prompt; the previous state is saved as a version."""
    client: VaultClient = ctx.obj
    data: dict[str, Any] = {}
    if title is not None:
        data["title"] = title
    body = _read_content(content, file_path)
    if body is not None:
        data["content"] = body
    if category is not None:
        data["category"] = category
    if tags is not None:
        data["tags"] = _split_tags(tags)
    if not data:
        raise click.UsageError("Nothing to update")
    if reason:
        data["change_reason"] = reason
    _output(ctx, client.update_prompt(prompt_id, data))


@prompt.command("delete")
@click.argument("prompt_id")
@click.confirmation_option(prompt="Delete this prompt and its history?")
@click.pass_context
def prompt_delete(ctx: click.Context, prompt_id: str) -> None:
    """Delete a prompt with its versions."""
    client: VaultClient = ctx.obj
    client.delete_prompt(prompt_id)
    click.echo(f"Deleted prompt '{prompt_id}'")


# --- Version commands ---


@cli.group()
def version() -> None:
    """Browse and restore versions."""


@version.command("history")
@click.argument("prompt_id")
@click.pass_context
def version_history(ctx: click.Context, prompt_id: str) -> None:
    """Show version history, newest first."""
    client: VaultClient = ctx.obj
    data = client.list_versions(prompt_id)
    _output(ctx, data, ["version_number", "title", "change_reason", "created_at"])


@version.command("show")
@click.argument("prompt_id")
@click.argument("version_num", type=int)
@click.pass_context
def version_show(ctx: click.Context, prompt_id: str, version_num: int) -> None:
    client: VaultClient = ctx.obj
    _output(ctx, client.get_version(prompt_id, version_num))


@version.command("restore")
@click.argument("prompt_id")
@click.argument("version_num", type=int)
@click.option("--reason", "-m", default=None)
@click.pass_context
def version_restore(ctx: click.Context, prompt_id: str, version_num: int, reason: str | None) -> None:
    """Restore a prompt to an earlier version."""
    client: VaultClient = ctx.obj
    _output(ctx, client.restore_version(prompt_id, version_num, reason))


# --- Search ---


@cli.command()
@click.argument("query")
@click.option(
    "--mode",
    type=click.Choice(["default", "hybrid", "fts", "semantic"]),
    default="hybrid",
)
@click.option("--category", default=None)
@click.option("--limit", type=int, default=10)
@click.pass_context
def search(ctx: click.Context, query: str, mode: str, category: str | None, limit: int) -> None:
    """Search prompts."""
    client: VaultClient = ctx.obj
    data = client.search(query, mode=mode, category=category, limit=limit)
    columns = {
        "fts": ["id", "title", "category", "search_rank"],
        "semantic": ["id", "title", "category", "similarity"],
    }.get(mode, ["id", "title", "category", "search_type", "hybrid_score"])
    _output(ctx, data, columns)


# --- Embeddings ---


@cli.group()
def embeddings() -> None:
    """Manage search embeddings."""


@embeddings.command("regenerate")
@click.argument("prompt_id", required=False)
@click.option("--all", "regenerate_all", is_flag=True, help="Regenerate every prompt's embedding")
@click.pass_context
def embeddings_regenerate(ctx: click.Context, prompt_id: str | None, regenerate_all: bool) -> None:
    """Regenerate one embedding, or all of them with --all."""
    client: VaultClient = ctx.obj
    if regenerate_all:
        result = client.regenerate_all_embeddings()
        click.echo(f"Regenerated {result['successful']} embeddings ({result['failed']} failed)")
        return
    if not prompt_id:
        raise click.UsageError("Give a prompt id or --all")
    _output(ctx, client.regenerate_embedding(prompt_id))


# --- Categories ---


@cli.group()
def category() -> None:
    """Manage categories."""


@category.command("list")
@click.pass_context
def category_list(ctx: click.Context) -> None:
    client: VaultClient = ctx.obj
    _output(ctx, client.list_categories(), ["name", "color"])


@category.command("create")
@click.argument("name")
@click.option("--color", default=None, help="Hex color such as #3B82F6")
@click.pass_context
def category_create(ctx: click.Context, name: str, color: str | None) -> None:
    client: VaultClient = ctx.obj
    _output(ctx, client.create_category(name, color))


# --- Suggestions ---


@cli.command()
@click.option("--content", default=None)
@click.option("--file", "-f", "file_path", default=None, help="Read content from a file ('-' for stdin)")
@click.option("--category", default=None)
@click.pass_context
def suggest(ctx: click.Context, content: str | None, file_path: str | None, category: str | None) -> None:
    """Suggest improvements for a prompt text."""
    client: VaultClient = ctx.obj
    body = _read_content(content, file_path)
    if not body:
        raise click.UsageError("Provide --content or --file")
    result = client.suggest(body, category)
    if ctx.meta.get("output_format") == "json":
        _output(ctx, result)
        return
    click.echo(f"Readability: {result['readability_score']}  Tokens: ~{result['estimated_tokens']}")
    click.echo("\nImprovements:")
    for item in result["improvements"]:
        click.echo(f"  - {item}")
    for name, text in result.get("suggestions", {}).items():
        click.echo(f"\n{name.capitalize()}: {text}")


# --- Export / import ---


@cli.command("export")
@click.option("--output", "-o", "output_path", default=None, help="Write to a file instead of stdout")
@click.pass_context
def export_cmd(ctx: click.Context, output_path: str | None) -> None:
    """Export all prompts and categories as JSON."""
    client: VaultClient = ctx.obj
    data = client.export_data()
    if output_path:
        with open(output_path, "w") as f:
            json.dump(data, f, indent=2, default=str)
        click.echo(f"Exported {len(data['prompts'])} prompts to {output_path}")
    else:
        click.echo(json.dumps(data, indent=2, default=str))


@cli.command("import")
@click.argument("file_path")
@click.pass_context
def import_cmd(ctx: click.Context, file_path: str) -> None:
    """Import prompts and categories from an export file."""
    client: VaultClient = ctx.obj
    with open(file_path) as f:
        payload = json.load(f)
    result = client.import_data(payload)
    click.echo(f"Imported {result['prompts']} prompts and {result['categories']} categories")


if __name__ == "__main__":
    cli()
