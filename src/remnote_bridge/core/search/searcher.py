"""Search the knowledge base and assemble ranked results."""

from dataclasses import dataclass, replace

from remnote_bridge.config import (
    DEFAULT_SEARCH_CHILD_LIMIT,
    DEFAULT_SEARCH_DEPTH,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SEARCH_MAX_CONTENT_LENGTH,
    SEARCH_OVERSAMPLE_FACTOR,
)
from remnote_bridge.core.classify.classifier import classify
from remnote_bridge.core.read.reader import describe_node
from remnote_bridge.core.tree.markdown import build_content_properties, render_markdown
from remnote_bridge.core.tree.structured import render_structured
from remnote_bridge.errors import InvalidIncludeContentError, InvalidParameterError
from remnote_bridge.models.node import Category, Node, NoteSummary
from remnote_bridge.protocols import NodeStoreProtocol

SEARCH_INCLUDE_CONTENT_MODES = ("none", "markdown", "structured")

# Lower sorts first.
CATEGORY_PRIORITY: dict[Category, int] = {
    Category.DOCUMENT: 0,
    Category.CONCEPT: 0,
    Category.DAILY_DOCUMENT: 1,
    Category.PORTAL: 2,
    Category.DESCRIPTOR: 3,
    Category.TEXT: 4,
}

_DOCUMENT_CATEGORIES = (Category.DOCUMENT, Category.DAILY_DOCUMENT)


@dataclass(frozen=True)
class SearchContentOptions:
    """How much of each hit's subtree to render."""

    include_content: str = "none"
    depth: int = DEFAULT_SEARCH_DEPTH
    child_limit: int = DEFAULT_SEARCH_CHILD_LIMIT
    max_content_length: int = DEFAULT_SEARCH_MAX_CONTENT_LENGTH


def parse_search_include_content(value: str | None) -> str:
    mode = value if value is not None else "none"
    if mode not in SEARCH_INCLUDE_CONTENT_MODES:
        raise InvalidIncludeContentError("search", value, SEARCH_INCLUDE_CONTENT_MODES)
    return mode


def build_content_options(
    *,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> SearchContentOptions:
    """Validate the inclusion mode and fill in search defaults."""
    return SearchContentOptions(
        include_content=parse_search_include_content(include_content),
        depth=DEFAULT_SEARCH_DEPTH if depth is None else depth,
        child_limit=DEFAULT_SEARCH_CHILD_LIMIT if child_limit is None else child_limit,
        max_content_length=(
            DEFAULT_SEARCH_MAX_CONTENT_LENGTH if max_content_length is None else max_content_length
        ),
    )


def oversampled_fetch_limit(limit: int) -> int:
    """Number of raw hits to request so dedupe still leaves ``limit`` results.

    This is a heuristic: the backend may cap its own result count below it.
    """
    return max(limit, int(limit * SEARCH_OVERSAMPLE_FACTOR))


def sort_results(items: list[NoteSummary]) -> list[NoteSummary]:
    """Order by category priority, keeping backend order within each category."""
    return sorted(
        items,
        key=lambda item: (CATEGORY_PRIORITY.get(item.category, 5), item.source_index),
    )


async def build_result_item(
    store: NodeStoreProtocol,
    node: Node,
    source_index: int,
    options: SearchContentOptions,
) -> NoteSummary:
    """Describe one hit and render its content per ``options``."""
    info = await describe_node(store, node)
    item = NoteSummary(
        id=node.id,
        title=info.title,
        headline=info.headline,
        category=info.category,
        parent_id=info.parent_id,
        parent_title=info.parent_title,
        aliases=info.aliases,
        card_direction=info.card_direction,
        source_index=source_index,
    )

    if options.include_content == "markdown":
        result = await render_markdown(
            store, node, options.depth, options.child_limit, options.max_content_length
        )
        if result.content:
            properties = await build_content_properties(store, node, result, options.depth)
            item = replace(item, content=result.content, content_properties=properties)
    elif options.include_content == "structured":
        structured = await render_structured(store, node, options.depth, options.child_limit)
        if structured:
            item = replace(item, content_structured=tuple(structured))
    return item


async def search_notes(
    store: NodeStoreProtocol,
    *,
    query: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> list[NoteSummary]:
    """Free-text search.

    Hits are deduplicated by id, then sorted by category priority
    (documents and concepts first, plain text last). Within a category the
    backend's order is kept as a relevance proxy, since no score is exposed.
    The limit is applied after sorting.

    Args:
        store: Backend to search.
        query: Search text.
        limit: Max results (default 50).
        include_content: "none" (default), "markdown" or "structured".
        depth: Levels of children to render per hit (default 1).
        child_limit: Max children per level (default 20).
        max_content_length: Cap on markdown length per hit (default 3000).

    Raises:
        InvalidIncludeContentError: Unknown ``include_content``.
    """
    options = build_content_options(
        include_content=include_content,
        depth=depth,
        child_limit=child_limit,
        max_content_length=max_content_length,
    )
    limit = DEFAULT_SEARCH_LIMIT if limit is None else limit

    hits = await store.query_by_text(query, oversampled_fetch_limit(limit))

    collected: list[NoteSummary] = []
    seen: set[str] = set()
    for node in hits:
        if node.id in seen:
            continue
        seen.add(node.id)
        collected.append(await build_result_item(store, node, len(collected), options))

    return sort_results(collected)[:limit]


async def find_tag_node(store: NodeStoreProtocol, tag: str) -> Node | None:
    """Find the Rem for ``tag``, trying it with and without a leading ``#``."""
    candidates = [tag]
    if tag.startswith("#") and len(tag) > 1:
        candidates.append(tag[1:])
    elif not tag.startswith("#"):
        candidates.append(f"#{tag}")

    for candidate in dict.fromkeys(candidates):
        match = await store.find_by_exact_name(candidate)
        if match is not None:
            return match
    return None


async def resolve_tag_target(store: NodeStoreProtocol, node: Node) -> Node:
    """Pick the Rem to report for a tagged Rem.

    The Rem itself when it is a document, else its nearest document
    ancestor, else its nearest ancestor, else the Rem itself.
    """
    if await classify(store, node) in _DOCUMENT_CATEGORIES:
        return node

    nearest: Node | None = None
    parent = await store.get_parent(node)
    while parent is not None:
        if nearest is None:
            nearest = parent
        if await classify(store, parent) in _DOCUMENT_CATEGORIES:
            return parent
        parent = await store.get_parent(parent)
    return nearest or node


async def search_by_tag(
    store: NodeStoreProtocol,
    *,
    tag: str,
    limit: int | None = None,
    include_content: str | None = None,
    depth: int | None = None,
    child_limit: int | None = None,
    max_content_length: int | None = None,
) -> list[NoteSummary]:
    """Find Rems carrying ``tag`` and report their document context.

    Raises:
        InvalidParameterError: Blank tag.
        InvalidIncludeContentError: Unknown ``include_content``.
    """
    tag = tag.strip()
    if not tag:
        raise InvalidParameterError("Tag cannot be empty")
    options = build_content_options(
        include_content=include_content,
        depth=depth,
        child_limit=child_limit,
        max_content_length=max_content_length,
    )
    limit = DEFAULT_SEARCH_LIMIT if limit is None else limit

    tag_node = await find_tag_node(store, tag)
    if tag_node is None:
        return []

    collected: list[NoteSummary] = []
    seen: set[str] = set()
    for tagged in await store.get_tagged_nodes(tag_node):
        target = await resolve_tag_target(store, tagged)
        if target.id in seen:
            continue
        seen.add(target.id)
        collected.append(await build_result_item(store, target, len(collected), options))

    return sort_results(collected)[:limit]
