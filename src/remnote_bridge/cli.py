"""CLI for the RemNote bridge (search, read, MCP server)."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from remnote_bridge.config import load_settings, resolve_export_file
from remnote_bridge.core.read.reader import read_note
from remnote_bridge.core.search.searcher import search_by_tag, search_notes
from remnote_bridge.core.write.client import get_status
from remnote_bridge.errors import RemBridgeError
from remnote_bridge.logging_config import configure_logging
from remnote_bridge.models.node import NoteSummary
from remnote_bridge.protocols import NoteBackendProtocol

app = typer.Typer(help="RemNote bridge: search and read your RemNote knowledge base.")

ExportOption = Annotated[
    Path | None,
    typer.Option("--export", "-e", help="JSON export to read instead of the live bridge"),
]
UrlOption = Annotated[
    str | None,
    typer.Option("--url", "-u", help="Bridge URL (default from REMNOTE_BRIDGE_URL)"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _open_backend(export: Path | None, url: str | None) -> NoteBackendProtocol:
    """Pick the backend: explicit URL, then explicit or default export file."""
    if url:
        from remnote_bridge.api import HttpBridgeBackend

        return HttpBridgeBackend(url)

    path = export or resolve_export_file()
    if not path.exists():
        logger.error("Export file not found: {}. Pass --export or --url.", path)
        raise typer.Exit(1)

    from remnote_bridge.backend.memory import load_backend

    return load_backend(path)


def _print_results(items: list[NoteSummary], output_json: bool) -> None:
    if output_json:
        typer.echo(json.dumps({"results": [i.to_dict() for i in items]}, indent=2))
        return

    typer.echo(f"Found {len(items)} results:\n")
    for item in items:
        typer.echo(f"  [{item.category}] {item.headline[:80]}")
        if item.parent_title:
            typer.echo(f"    in: {item.parent_title[:60]}")
        typer.echo(f"    id={item.id}")
        if item.content:
            for line in item.content.splitlines():
                typer.echo(f"    {line}")
        typer.echo()


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
    include_content: str = typer.Option(
        "none", "--content", "-c", help="none, markdown or structured"
    ),
    depth: int = typer.Option(1, "--depth", help="Levels of children per result"),
    export: ExportOption = None,
    url: UrlOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search for Rems matching a query."""
    backend = _open_backend(export, url)
    try:
        items = asyncio.run(
            search_notes(
                backend, query=query, limit=limit, include_content=include_content, depth=depth
            )
        )
    except RemBridgeError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    _print_results(items, output_json)


@app.command()
def tag(
    name: str = typer.Argument(..., help="Tag name, with or without '#'"),
    limit: int = typer.Option(10, "--limit", "-n", help="Max results"),
    export: ExportOption = None,
    url: UrlOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List documents containing Rems with a tag."""
    backend = _open_backend(export, url)
    try:
        items = asyncio.run(search_by_tag(backend, tag=name, limit=limit))
    except RemBridgeError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    _print_results(items, output_json)


@app.command()
def read(
    node_id: str = typer.Argument(..., help="Rem id to read"),
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-m", help="Levels of children to render"),
    ] = None,
    max_length: Annotated[
        int | None,
        typer.Option("--max-length", help="Cap on rendered markdown length"),
    ] = None,
    export: ExportOption = None,
    url: UrlOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Read a Rem and its subtree as markdown."""
    backend = _open_backend(export, url)
    try:
        note = asyncio.run(
            read_note(backend, node_id=node_id, depth=depth, max_content_length=max_length)
        )
    except RemBridgeError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e

    if output_json:
        typer.echo(json.dumps(note.to_dict(), indent=2))
        return

    typer.echo(f"# {note.headline}\n")
    if note.content:
        typer.echo(note.content)
    props = note.content_properties
    if props is not None and props.content_truncated:
        typer.echo(
            f"... truncated: showing {props.children_rendered} of "
            f"{props.children_total} Rems"
        )


@app.command()
def status() -> None:
    """Show bridge version and settings."""
    info = get_status()
    settings = load_settings()
    typer.echo(f"remnote-bridge {info['plugin_version']}")
    typer.echo(f"  bridge url: {settings.bridge_url}")
    typer.echo(f"  export:     {resolve_export_file()}")
    auto_tag = settings.auto_tag if settings.auto_tag_enabled else "(disabled)"
    typer.echo(f"  auto-tag:   {auto_tag}")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from remnote_bridge.mcp.server import run_mcp_server

    run_mcp_server()
