"""Flatten rich text to a display string, resolving Rem references."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from remnote_bridge.models.node import Node
from remnote_bridge.models.rich_text import (
    Annotation,
    Audio,
    Drawing,
    EmbeddedElement,
    FormattedText,
    GlobalName,
    Image,
    Math,
    PlainText,
    Reference,
    RichTextElement,
    SectionDelimiter,
    UnknownElement,
)
from remnote_bridge.protocols import NodeStoreProtocol

DELETED_REFERENCE = "[deleted reference]"
CIRCULAR_REFERENCE = "[circular reference]"


@contextmanager
def _expanding(visited: set[str], ref_id: str) -> Iterator[None]:
    """Mark ``ref_id`` as in flight for the duration of its own expansion."""
    visited.add(ref_id)
    try:
        yield
    finally:
        visited.discard(ref_id)


async def _lookup(store: NodeStoreProtocol, ref_id: str) -> Node | None:
    try:
        return await store.get_node(ref_id)
    except Exception:
        logger.debug("Reference lookup for {} failed, treating as unresolved", ref_id, exc_info=True)
        return None


def format_span(element: FormattedText) -> str:
    """Apply markdown styling to a formatted span, innermost first."""
    text = element.text
    if not text:
        return ""
    if element.code:
        text = f"`{text}`"
    if element.bold:
        text = f"**{text}**"
    if element.italic:
        text = f"*{text}*"
    if element.url:
        text = f"[{text}]({element.url})"
    return text


async def _extract_reference(
    store: NodeStoreProtocol, element: Reference, visited: set[str]
) -> str:
    if not element.ref_id:
        return DELETED_REFERENCE
    if element.ref_id in visited:
        return CIRCULAR_REFERENCE
    with _expanding(visited, element.ref_id):
        target = await _lookup(store, element.ref_id)
        if target is not None:
            return await extract_text(store, target.text, visited)
        if element.deleted_text:
            fallback = await extract_text(store, element.deleted_text, visited)
            return fallback or DELETED_REFERENCE
        return DELETED_REFERENCE


async def _extract_global_name(
    store: NodeStoreProtocol, element: GlobalName, visited: set[str]
) -> str:
    if not element.ref_id:
        return ""
    if element.ref_id in visited:
        return CIRCULAR_REFERENCE
    with _expanding(visited, element.ref_id):
        target = await _lookup(store, element.ref_id)
        if target is None:
            return ""
        return await extract_text(store, target.text, visited)


async def _extract_element(
    store: NodeStoreProtocol, element: RichTextElement, visited: set[str]
) -> str:
    if isinstance(element, PlainText):
        return element.text
    if isinstance(element, FormattedText):
        return format_span(element)
    if isinstance(element, Reference):
        return await _extract_reference(store, element, visited)
    if isinstance(element, GlobalName):
        return await _extract_global_name(store, element, visited)
    if isinstance(element, (Math, Annotation)):
        return element.text
    if isinstance(element, Image):
        return element.title or "[image]"
    if isinstance(element, Audio):
        return "[audio]"
    if isinstance(element, Drawing):
        return "[drawing]"
    if isinstance(element, (SectionDelimiter, EmbeddedElement)):
        return ""
    if isinstance(element, UnknownElement):
        return element.text or ""
    return ""


async def extract_text(
    store: NodeStoreProtocol,
    content: Any,
    visited: set[str] | None = None,
) -> str:
    """Render a rich-text sequence as a single string.

    Args:
        store: Backend used to resolve ``q`` and ``g`` references.
        content: Parsed rich-text elements. Anything that is not a list or
            tuple renders as an empty string.
        visited: Ids whose expansion is in progress further up this branch.
            Omit it at the top level; a fresh set is created.

    Returns:
        Concatenated text of all elements, in order, without separators.
    """
    if not isinstance(content, (list, tuple)):
        return ""

    if visited is None:
        visited = set()

    parts: list[str] = []
    for element in content:
        parts.append(await _extract_element(store, element, visited))
    return "".join(parts)
