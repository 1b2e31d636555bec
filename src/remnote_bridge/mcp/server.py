"""MCP server exposing RemNote search, read and write tools."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from remnote_bridge.config import BridgeSettings, load_settings, resolve_export_file
from remnote_bridge.core.read.reader import read_note
from remnote_bridge.core.search.searcher import search_by_tag, search_notes
from remnote_bridge.core.write.client import append_journal, create_note, get_status, update_note
from remnote_bridge.errors import RemBridgeError
from remnote_bridge.protocols import NoteBackendProtocol

# --- Core functions (testable without MCP context) ---


def _results(items: list[Any]) -> dict[str, Any]:
    serialized = [item.to_dict() for item in items]
    return {"results": serialized, "count": len(serialized)}


async def remnote_search(
    backend: NoteBackendProtocol,
    *,
    query: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Search Rems by text, documents and concepts first.

    Args:
        query: Search text.
        limit: Max results (default 50).
        include_content: "none", "markdown" or "structured".
        depth: Levels of children rendered per result (default 1).
        child_limit: Max children per level (default 20).
        max_content_length: Markdown length cap per result (default 3000).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}
    try:
        items = await search_notes(
            backend,
            query=query,
            limit=limit,
            include_content=include_content,
            depth=depth,
            child_limit=child_limit,
            max_content_length=max_content_length,
        )
    except RemBridgeError as e:
        return {"error": str(e), "results": [], "count": 0}
    return _results(items)


async def remnote_search_by_tag(
    backend: NoteBackendProtocol,
    *,
    tag: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Find Rems tagged with ``tag`` and return their enclosing documents."""
    try:
        items = await search_by_tag(
            backend,
            tag=tag,
            limit=limit,
            include_content=include_content,
            depth=depth,
            child_limit=child_limit,
            max_content_length=max_content_length,
        )
    except RemBridgeError as e:
        return {"error": str(e), "results": [], "count": 0}
    return _results(items)


async def remnote_read_note(
    backend: NoteBackendProtocol,
    *,
    node_id: str,
    depth: int | None = None,
    include_content: str | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Read a Rem and render its subtree as markdown."""
    try:
        note = await read_note(
            backend,
            node_id=node_id,
            depth=depth,
            include_content=include_content,
            child_limit=child_limit,
            max_content_length=max_content_length,
        )
    except RemBridgeError as e:
        return {"error": str(e)}
    return note.to_dict()


async def remnote_create_note(
    backend: NoteBackendProtocol,
    settings: BridgeSettings,
    *,
    title: str,
    content: str | None = None,
    parent_id: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    try:
        return await create_note(
            backend, settings, title=title, content=content, parent_id=parent_id, tags=tags
        )
    except RemBridgeError as e:
        return {"error": str(e)}


async def remnote_update_note(
    backend: NoteBackendProtocol,
    *,
    node_id: str,
    title: str | None = None,
    append_content: str | None = None,
    add_tags: list[str] | None = None,
    remove_tags: list[str] | None = None,
) -> dict[str, Any]:
    try:
        return await update_note(
            backend,
            node_id=node_id,
            title=title,
            append_content=append_content,
            add_tags=add_tags,
            remove_tags=remove_tags,
        )
    except RemBridgeError as e:
        return {"error": str(e)}


async def remnote_append_journal(
    backend: NoteBackendProtocol,
    settings: BridgeSettings,
    *,
    content: str,
    timestamp: bool | None = None,
) -> dict[str, Any]:
    try:
        return await append_journal(backend, settings, content=content, timestamp=timestamp)
    except RemBridgeError as e:
        return {"error": str(e)}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    backend: NoteBackendProtocol
    settings: BridgeSettings


def open_backend(settings: BridgeSettings) -> NoteBackendProtocol:
    """Use the JSON export when one exists, otherwise talk to the HTTP bridge."""
    export_file = resolve_export_file()
    if export_file.exists() and not os.environ.get("REMNOTE_BRIDGE_URL"):
        from remnote_bridge.backend.memory import load_backend

        logger.info("Serving notes from export {}", export_file)
        return load_backend(export_file)

    from remnote_bridge.api import HttpBridgeBackend

    logger.info("Serving notes from bridge {}", settings.bridge_url)
    return HttpBridgeBackend(settings.bridge_url)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Resolve settings and open the backend on startup."""
    settings = load_settings()
    yield ServerContext(backend=open_backend(settings), settings=settings)


mcp_server = FastMCP(
    "remnote-bridge",
    instructions="""\
RemNote is a tree-structured note tool. Every Rem has a title, optionally a
detail (the back of a flashcard), and children.

## Reading results
- Headlines join title and detail with a delimiter: "::" for concepts,
  ";;" for descriptors, ">>" for everything else.
- Search results are grouped by category: documents and concepts first,
  then daily documents, portals, descriptors and plain text.
- Use include_content="markdown" or "structured" to see children inline, or
  call remnote_read_note_tool on a result's id for the full subtree.
- content_properties.content_truncated means the output hit the length cap;
  children_total then tells how many Rems exist below (capped at 2000).
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def remnote_search_tool(
    ctx: Context,
    query: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Search the RemNote knowledge base.

    Results are sorted by category (document/concept, daily document, portal,
    descriptor, text); within a category the search engine's order is kept.

    Args:
        query: Search text.
        limit: Max results (default 50).
        include_content: "none" (default), "markdown" or "structured".
        depth: Levels of children to include per result (default 1).
        child_limit: Max children per level (default 20).
        max_content_length: Markdown length cap per result (default 3000).
    """
    return await remnote_search(
        _ctx(ctx).backend,
        query=query,
        limit=limit,
        include_content=include_content,
        depth=depth,
        child_limit=child_limit,
        max_content_length=max_content_length,
    )


@mcp_server.tool()
async def remnote_search_by_tag_tool(
    ctx: Context,
    tag: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Find Rems carrying a tag and return their documents.

    Each tagged Rem is reported through its nearest document ancestor,
    falling back to its nearest ancestor, then to the Rem itself.

    Args:
        tag: Tag name, with or without a leading "#".
        limit: Max results (default 50).
        include_content: "none" (default), "markdown" or "structured".
        depth: Levels of children to include per result (default 1).
        child_limit: Max children per level (default 20).
        max_content_length: Markdown length cap per result (default 3000).
    """
    return await remnote_search_by_tag(
        _ctx(ctx).backend,
        tag=tag,
        limit=limit,
        include_content=include_content,
        depth=depth,
        child_limit=child_limit,
        max_content_length=max_content_length,
    )


@mcp_server.tool()
async def remnote_read_note_tool(
    ctx: Context,
    node_id: str,
    depth: int | None = None,
    include_content: str | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> dict[str, Any]:
    """Read a Rem with its metadata and its subtree as markdown.

    Args:
        node_id: Rem id.
        depth: Levels of children to render (default 5).
        include_content: "markdown" (default) or "none".
        child_limit: Max children per level (default 100).
        max_content_length: Markdown length cap (default 100000).
    """
    return await remnote_read_note(
        _ctx(ctx).backend,
        node_id=node_id,
        depth=depth,
        include_content=include_content,
        child_limit=child_limit,
        max_content_length=max_content_length,
    )


@mcp_server.tool()
async def remnote_create_note_tool(
    ctx: Context,
    title: str,
    content: str | None = None,
    parent_id: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Create a note. Each non-blank line of content becomes a child Rem.

    Args:
        title: Note title.
        content: Optional multi-line body.
        parent_id: Parent Rem id (defaults to the configured parent).
        tags: Tag names to add; the auto-tag is added when enabled.
    """
    server = _ctx(ctx)
    return await remnote_create_note(
        server.backend,
        server.settings,
        title=title,
        content=content,
        parent_id=parent_id,
        tags=tags,
    )


@mcp_server.tool()
async def remnote_update_note_tool(
    ctx: Context,
    node_id: str,
    title: str | None = None,
    append_content: str | None = None,
    add_tags: list[str] | None = None,
    remove_tags: list[str] | None = None,
) -> dict[str, Any]:
    """Update a note's title, append child lines, or change its tags.

    Args:
        node_id: Rem id.
        title: New title.
        append_content: Lines to append as children.
        add_tags: Tag names to add.
        remove_tags: Tag names to remove.
    """
    return await remnote_update_note(
        _ctx(ctx).backend,
        node_id=node_id,
        title=title,
        append_content=append_content,
        add_tags=add_tags,
        remove_tags=remove_tags,
    )


@mcp_server.tool()
async def remnote_append_journal_tool(
    ctx: Context,
    content: str,
    timestamp: bool | None = None,
) -> dict[str, Any]:
    """Append an entry to today's daily document.

    Args:
        content: Entry text.
        timestamp: Prefix the time of day (defaults to the configured setting).
    """
    server = _ctx(ctx)
    return await remnote_append_journal(
        server.backend, server.settings, content=content, timestamp=timestamp
    )


@mcp_server.tool()
async def remnote_status_tool() -> dict[str, Any]:
    """Report bridge status and version."""
    return get_status()


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from remnote_bridge.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
