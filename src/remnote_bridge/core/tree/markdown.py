"""Render Rem subtrees as markdown."""

import asyncio

from remnote_bridge.config import CHILDREN_TOTAL_CAP
from remnote_bridge.core.classify.classifier import classify, title_and_detail
from remnote_bridge.core.text.headline import format_headline
from remnote_bridge.core.tree.children import get_renderable_children
from remnote_bridge.models.node import ContentProperties, Node, RenderResult
from remnote_bridge.protocols import NodeStoreProtocol


async def render_markdown(
    store: NodeStoreProtocol,
    node: Node,
    depth: int,
    child_limit: int,
    max_length: int,
    indent_level: int = 0,
    accumulated: str = "",
) -> RenderResult:
    """Render a Rem's descendants as an indented bullet list.

    Each rendered Rem becomes one line, ``indent_level * 2`` spaces followed
    by ``- `` and its headline. The Rem itself is not rendered, only what is
    below it.

    Args:
        store: Backend to read children from.
        node: The Rem whose subtree is rendered.
        depth: Levels below ``node`` to include. ``0`` renders nothing.
        child_limit: Max children rendered per level.
        max_length: Hard cap on the length of the returned content. A line that
            would cross it is dropped whole, together with everything after it.
        indent_level: Indentation of this level's bullets.
        accumulated: Content rendered so far by the callers.

    Returns:
        The accumulated content, the number of Rems rendered at this level
        and below, and whether the length cap cut the output short.
    """
    if depth <= 0:
        return RenderResult(content=accumulated, children_rendered=0, truncated_by_length=False)

    children = await get_renderable_children(store, node, child_limit)
    content = accumulated
    rendered = 0
    truncated = False
    indent = "  " * indent_level

    for child in children:
        parts, category = await asyncio.gather(
            title_and_detail(store, child),
            classify(store, child),
        )
        line = f"{indent}- {format_headline(parts.title, parts.detail, category)}\n"

        if len(content) + len(line) > max_length:
            truncated = True
            break

        content += line
        rendered += 1

        sub = await render_markdown(
            store,
            child,
            depth - 1,
            child_limit,
            max_length,
            indent_level + 1,
            content,
        )
        content = sub.content
        rendered += sub.children_rendered
        if sub.truncated_by_length:
            truncated = True
            break

    return RenderResult(content=content, children_rendered=rendered, truncated_by_length=truncated)


async def count_descendants(
    store: NodeStoreProtocol, node: Node, depth: int, cap: int = CHILDREN_TOTAL_CAP
) -> int:
    """Count Rems up to ``depth`` levels below ``node``, stopping at ``cap``."""
    if depth <= 0:
        return 0

    children = await store.get_children(node)
    if not children:
        return 0

    total = len(children)
    if total >= cap:
        return cap

    for child in children:
        total += await count_descendants(store, child, depth - 1, cap)
        if total >= cap:
            return cap
    return total


async def build_content_properties(
    store: NodeStoreProtocol, node: Node, result: RenderResult, depth: int
) -> ContentProperties:
    """Summarize a render. Descendants are only counted when output was truncated."""
    if result.truncated_by_length:
        total = await count_descendants(store, node, depth)
    else:
        total = result.children_rendered
    return ContentProperties(
        children_rendered=result.children_rendered,
        children_total=total,
        content_truncated=result.truncated_by_length,
    )
