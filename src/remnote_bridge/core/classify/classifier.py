"""Classify Rems and split them into title and detail."""

import asyncio

from loguru import logger

from remnote_bridge.core.text.extractor import extract_text
from remnote_bridge.models.node import CardDirection, Category, Node, NodeType, TitleDetail
from remnote_bridge.models.rich_text import find_delimiter
from remnote_bridge.protocols import NodeStoreProtocol

DAILY_DOCUMENT_CAPABILITY = "daily_document"

_TYPE_CATEGORIES: dict[NodeType, Category] = {
    NodeType.CONCEPT: Category.CONCEPT,
    NodeType.DESCRIPTOR: Category.DESCRIPTOR,
    NodeType.PORTAL: Category.PORTAL,
}

_DIRECTIONS: dict[str, CardDirection] = {
    "forward": CardDirection.FORWARD,
    "backward": CardDirection.REVERSE,
    "both": CardDirection.BIDIRECTIONAL,
}


async def probe_capability(store: NodeStoreProtocol, node: Node, capability: str) -> bool:
    """Ask the backend for a capability flag; a failing probe counts as False."""
    try:
        return bool(await store.has_capability(node, capability))
    except Exception:
        logger.debug("Capability probe {} failed for {}", capability, node.id, exc_info=True)
        return False


async def classify(store: NodeStoreProtocol, node: Node) -> Category:
    """Determine a Rem's category.

    The daily-document capability wins over every type tag; the document
    probe runs last as it is the most expensive one.
    """
    if await probe_capability(store, node, DAILY_DOCUMENT_CAPABILITY):
        return Category.DAILY_DOCUMENT
    category = _TYPE_CATEGORIES.get(node.type)
    if category is not None:
        return category
    if await store.is_document(node):
        return Category.DOCUMENT
    return Category.TEXT


async def title_and_detail(store: NodeStoreProtocol, node: Node) -> TitleDetail:
    """Split a Rem into its front (title) and back (detail) text.

    With a section delimiter, the title is the text before it and the detail
    comes from ``back_text`` when present, else from the elements after the
    delimiter. Without one, the detail is ``back_text`` alone. An empty
    detail is reported as None.
    """
    index = find_delimiter(node.text)
    if index >= 0:
        title = await extract_text(store, node.text[:index])
        source = node.back_text if node.back_text else node.text[index + 1 :]
        detail = await extract_text(store, source)
        return TitleDetail(title=title, detail=detail or None)

    title = await extract_text(store, node.text)
    if node.back_text:
        detail = await extract_text(store, node.back_text)
        return TitleDetail(title=title, detail=detail or None)
    return TitleDetail(title=title)


def map_card_direction(direction: str) -> CardDirection | None:
    """Map the backend's practice direction; "none" and unknown values map to None."""
    return _DIRECTIONS.get(direction)


async def practice_direction(store: NodeStoreProtocol, node: Node) -> CardDirection | None:
    """Card direction of a flashcard Rem.

    Rems without back text are not flashcards and are never probed.
    """
    if not node.back_text:
        return None
    return map_card_direction(await store.get_practice_direction(node))


async def get_aliases(store: NodeStoreProtocol, node: Node) -> list[str]:
    """Alternate names of a Rem, skipping aliases that render empty."""
    alias_nodes = await store.get_aliases(node)
    if not alias_nodes:
        return []
    texts = await asyncio.gather(*(extract_text(store, a.text) for a in alias_nodes))
    return [t for t in texts if t]


async def get_parent_context(
    store: NodeStoreProtocol, node: Node
) -> tuple[str | None, str | None]:
    """Return ``(parent_id, parent_title)``, both None for top-level Rems."""
    parent = await store.get_parent(node)
    if parent is None:
        return None, None
    parts = await title_and_detail(store, parent)
    return parent.id, parts.title
