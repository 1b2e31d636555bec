"""Render Rem subtrees as nested structured entries."""

import asyncio

from remnote_bridge.core.classify.classifier import (
    classify,
    get_aliases,
    practice_direction,
    title_and_detail,
)
from remnote_bridge.core.text.headline import format_headline
from remnote_bridge.core.tree.children import get_renderable_children
from remnote_bridge.models.node import Node, StructuredContentNode
from remnote_bridge.protocols import NodeStoreProtocol


async def render_structured(
    store: NodeStoreProtocol, node: Node, depth: int, child_limit: int
) -> list[StructuredContentNode]:
    """Recursive tree of a Rem's descendants, bounded by depth and per-level count."""
    if depth <= 0:
        return []

    results: list[StructuredContentNode] = []
    for child in await get_renderable_children(store, node, child_limit):
        parts, category, direction, aliases = await asyncio.gather(
            title_and_detail(store, child),
            classify(store, child),
            practice_direction(store, child),
            get_aliases(store, child),
        )
        children = await render_structured(store, child, depth - 1, child_limit)
        results.append(
            StructuredContentNode(
                id=child.id,
                title=parts.title,
                headline=format_headline(parts.title, parts.detail, category),
                category=category,
                aliases=tuple(aliases),
                card_direction=direction,
                children=tuple(children),
            )
        )
    return results
