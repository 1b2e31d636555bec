"""Write operations: create and update notes, append to the journal."""

from datetime import datetime
from typing import Any

from loguru import logger

from remnote_bridge import __version__
from remnote_bridge.config import BridgeSettings
from remnote_bridge.errors import BridgeError, NoteNotFoundError
from remnote_bridge.models.node import Node
from remnote_bridge.models.rich_text import PlainText, RichText
from remnote_bridge.protocols import NoteBackendProtocol


def text_to_rich_text(text: str) -> RichText:
    return (PlainText(text),)


def _content_lines(content: str) -> list[str]:
    """Split multi-line content into child lines, skipping blank ones."""
    return [line for line in content.split("\n") if line.strip()]


async def _append_children(backend: NoteBackendProtocol, parent: Node, content: str) -> int:
    count = 0
    for line in _content_lines(content):
        await backend.create_node(text_to_rich_text(line), parent_id=parent.id)
        count += 1
    return count


async def add_tag_by_name(backend: NoteBackendProtocol, node: Node, tag_name: str) -> None:
    """Tag ``node`` with the Rem named ``tag_name``, creating that Rem if needed."""
    tag = await backend.find_by_exact_name(tag_name)
    if tag is None:
        tag = await backend.create_node(text_to_rich_text(tag_name))
        logger.debug("Created tag Rem {} for {!r}", tag.id, tag_name)
    await backend.add_tag(node, tag)


async def create_note(
    backend: NoteBackendProtocol,
    settings: BridgeSettings,
    *,
    title: str,
    content: str | None = None,
    parent_id: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """Create a Rem with optional child lines and tags.

    Args:
        backend: Note backend.
        settings: Supplies the default parent and the auto-tag.
        title: Text of the new Rem.
        content: Newline-separated child lines; blank lines are skipped.
        parent_id: Parent Rem id. Falls back to ``settings.default_parent_id``;
            an unknown parent leaves the Rem at the top level.
        tags: Tag names to add.
    """
    parent: Node | None = None
    target_parent_id = parent_id or settings.default_parent_id
    if target_parent_id:
        parent = await backend.get_node(target_parent_id)
        if parent is None:
            logger.warning("Parent {} not found, creating note at top level", target_parent_id)

    node = await backend.create_node(
        text_to_rich_text(title), parent_id=parent.id if parent else None
    )
    if content:
        await _append_children(backend, node, content)

    all_tags = list(tags or [])
    if settings.auto_tag_enabled and settings.auto_tag and settings.auto_tag not in all_tags:
        all_tags.append(settings.auto_tag)
    for tag_name in all_tags:
        await add_tag_by_name(backend, node, tag_name)

    logger.info("Created note {} ({!r})", node.id, title)
    return {"node_id": node.id, "title": title}


async def update_note(
    backend: NoteBackendProtocol,
    *,
    node_id: str,
    title: str | None = None,
    append_content: str | None = None,
    add_tags: list[str] | None = None,
    remove_tags: list[str] | None = None,
) -> dict[str, Any]:
    """Update a Rem's title, append child lines, and add or remove tags.

    Raises:
        NoteNotFoundError: No Rem with ``node_id``.
    """
    node = await backend.get_node(node_id)
    if node is None:
        raise NoteNotFoundError(node_id)

    if title:
        node = await backend.set_text(node, text_to_rich_text(title))
    if append_content:
        await _append_children(backend, node, append_content)
    for tag_name in add_tags or []:
        await add_tag_by_name(backend, node, tag_name)
    for tag_name in remove_tags or []:
        tag = await backend.find_by_exact_name(tag_name)
        if tag is not None:
            await backend.remove_tag(node, tag)

    logger.info("Updated note {}", node_id)
    return {"success": True, "node_id": node_id}


def format_journal_entry(
    content: str, *, prefix: str, timestamp: bool, now: datetime
) -> str:
    """Build ``"<prefix> [HH:MM:SS] <content>"``, leaving out empty parts."""
    text = ""
    if prefix:
        text += f"{prefix} "
    if timestamp:
        text += f"[{now:%H:%M:%S}] "
    return text + content


async def append_journal(
    backend: NoteBackendProtocol,
    settings: BridgeSettings,
    *,
    content: str,
    timestamp: bool | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Append an entry to today's daily document.

    Args:
        backend: Note backend.
        settings: Supplies the journal prefix and the timestamp default.
        content: Entry text.
        timestamp: Prepend the time of day; defaults to ``settings.journal_timestamp``.
        now: Clock override.

    Raises:
        BridgeError: The backend could not provide a daily document.
    """
    now = now or datetime.now()
    daily = await backend.get_daily_document(now.date())
    if daily is None:
        msg = "Failed to access daily document"
        raise BridgeError(msg)

    use_timestamp = settings.journal_timestamp if timestamp is None else timestamp
    text = format_journal_entry(
        content, prefix=settings.journal_prefix, timestamp=use_timestamp, now=now
    )
    entry = await backend.create_node(text_to_rich_text(text), parent_id=daily.id)

    logger.info("Appended journal entry {} to {}", entry.id, daily.id)
    return {"node_id": entry.id, "content": text}


def get_status() -> dict[str, Any]:
    """Report bridge status."""
    return {"connected": True, "plugin_version": __version__, "knowledge_base_id": None}
