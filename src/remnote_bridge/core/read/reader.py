"""Read single Rems with their display metadata and rendered content."""

import asyncio
from dataclasses import dataclass

from remnote_bridge.config import (
    DEFAULT_CHILD_LIMIT,
    DEFAULT_DEPTH,
    DEFAULT_READ_MAX_CONTENT_LENGTH,
)
from remnote_bridge.core.classify.classifier import (
    classify,
    get_aliases,
    get_parent_context,
    practice_direction,
    title_and_detail,
)
from remnote_bridge.core.text.headline import format_headline
from remnote_bridge.core.tree.markdown import build_content_properties, render_markdown
from remnote_bridge.errors import InvalidIncludeContentError, NoteNotFoundError
from remnote_bridge.models.node import CardDirection, Category, Node, NoteSummary
from remnote_bridge.protocols import NodeStoreProtocol

READ_INCLUDE_CONTENT_MODES = ("none", "markdown")


@dataclass(frozen=True)
class NodeDescription:
    """Metadata shared by read and search responses."""

    title: str
    headline: str
    category: Category
    card_direction: CardDirection | None
    aliases: tuple[str, ...]
    parent_id: str | None
    parent_title: str | None


async def describe_node(store: NodeStoreProtocol, node: Node) -> NodeDescription:
    """Gather title, headline, category, direction, aliases and parent of a Rem."""
    parts, category, direction, aliases, (parent_id, parent_title) = await asyncio.gather(
        title_and_detail(store, node),
        classify(store, node),
        practice_direction(store, node),
        get_aliases(store, node),
        get_parent_context(store, node),
    )
    return NodeDescription(
        title=parts.title,
        headline=format_headline(parts.title, parts.detail, category),
        category=category,
        card_direction=direction,
        aliases=tuple(aliases),
        parent_id=parent_id,
        parent_title=parent_title,
    )


def parse_read_include_content(value: str | None) -> str:
    mode = value if value is not None else "markdown"
    if mode not in READ_INCLUDE_CONTENT_MODES:
        raise InvalidIncludeContentError("read_note", value, READ_INCLUDE_CONTENT_MODES)
    return mode


async def read_note(
    store: NodeStoreProtocol,
    *,
    node_id: str,
    depth: int | None = None,
    include_content: str | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> NoteSummary:
    """Read a Rem by id.

    Args:
        store: Backend to read from.
        node_id: Rem id.
        depth: Levels of children to render (default 5).
        include_content: "markdown" (default) or "none".
        child_limit: Max children per level (default 100).
        max_content_length: Cap on rendered markdown length (default 100000).

    Raises:
        InvalidIncludeContentError: Unknown ``include_content``; raised before
            the backend is contacted.
        NoteNotFoundError: No Rem with ``node_id``.
    """
    mode = parse_read_include_content(include_content)
    depth = DEFAULT_DEPTH if depth is None else depth
    child_limit = DEFAULT_CHILD_LIMIT if child_limit is None else child_limit
    if max_content_length is None:
        max_content_length = DEFAULT_READ_MAX_CONTENT_LENGTH

    node = await store.get_node(node_id)
    if node is None:
        raise NoteNotFoundError(node_id)

    info = await describe_node(store, node)

    content: str | None = None
    properties = None
    if mode == "markdown":
        result = await render_markdown(store, node, depth, child_limit, max_content_length)
        # Markdown mode always reports content, even when nothing was rendered.
        content = result.content
        properties = await build_content_properties(store, node, result, depth)

    return NoteSummary(
        id=node.id,
        title=info.title,
        headline=info.headline,
        category=info.category,
        parent_id=info.parent_id,
        parent_title=info.parent_title,
        aliases=info.aliases,
        card_direction=info.card_direction,
        content=content,
        content_properties=properties,
    )
