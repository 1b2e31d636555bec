"""Tests for note creation, updates and journal entries."""

import asyncio
from datetime import date, datetime

import pytest

from remnote_bridge import __version__
from remnote_bridge.backend.memory import InMemoryBackend, plain_text
from remnote_bridge.config import BridgeSettings
from remnote_bridge.core.write.client import (
    append_journal,
    create_note,
    format_journal_entry,
    get_status,
    update_note,
)
from remnote_bridge.errors import BridgeError, NoteNotFoundError
from remnote_bridge.models.node import Node


def _text(backend: InMemoryBackend, node_id: str) -> str:
    node = asyncio.run(backend.get_node(node_id))
    assert node is not None
    return plain_text(node.text)


def _child_texts(backend: InMemoryBackend, node_id: str) -> list[str]:
    node = asyncio.run(backend.get_node(node_id))
    assert node is not None
    return [plain_text(c.text) for c in asyncio.run(backend.get_children(node))]


def _tag_names(backend: InMemoryBackend, node_id: str) -> list[str]:
    return [_text(backend, tag_id) for tag_id in backend.tags_of(node_id)]


def test_create_note_with_content_and_tags(backend: InMemoryBackend) -> None:
    result = asyncio.run(
        create_note(
            backend,
            BridgeSettings(),
            title="Ribosome",
            content="Makes proteins\n\n  \nFound in cytoplasm",
            parent_id="doc1",
            tags=["bio"],
        )
    )
    node_id = result["node_id"]
    assert result == {"node_id": node_id, "title": "Ribosome"}
    assert _text(backend, node_id) == "Ribosome"
    assert _child_texts(backend, node_id) == ["Makes proteins", "Found in cytoplasm"]
    assert _child_texts(backend, "doc1")[-1] == "Ribosome"
    assert _tag_names(backend, node_id) == ["bio", "MCP"]


def test_create_note_reuses_existing_tag_node(backend: InMemoryBackend) -> None:
    result = asyncio.run(create_note(backend, BridgeSettings(), title="X", tags=["bio"]))
    assert backend.tags_of(result["node_id"])[0] == "tag_bio"


def test_auto_tag_not_duplicated(backend: InMemoryBackend) -> None:
    result = asyncio.run(create_note(backend, BridgeSettings(), title="X", tags=["MCP"]))
    assert _tag_names(backend, result["node_id"]) == ["MCP"]


def test_auto_tag_disabled(backend: InMemoryBackend) -> None:
    settings = BridgeSettings(auto_tag_enabled=False)
    result = asyncio.run(create_note(backend, settings, title="X"))
    assert backend.tags_of(result["node_id"]) == []


def test_default_parent_from_settings(backend: InMemoryBackend) -> None:
    settings = BridgeSettings(default_parent_id="doc1")
    result = asyncio.run(create_note(backend, settings, title="Inbox item"))
    node = asyncio.run(backend.get_node(result["node_id"]))
    assert node is not None
    assert node.parent_id == "doc1"


def test_unknown_parent_creates_top_level_note(backend: InMemoryBackend) -> None:
    result = asyncio.run(create_note(backend, BridgeSettings(), title="Orphan", parent_id="nope"))
    node = asyncio.run(backend.get_node(result["node_id"]))
    assert node is not None
    assert node.parent_id is None


def test_update_note(backend: InMemoryBackend) -> None:
    result = asyncio.run(
        update_note(
            backend,
            node_id="t1a",
            title="Energy factory",
            append_content="ATP\nRespiration",
            add_tags=["bio", "review"],
        )
    )
    assert result == {"success": True, "node_id": "t1a"}
    assert _text(backend, "t1a") == "Energy factory"
    assert _child_texts(backend, "t1a") == ["ATP", "Respiration"]
    assert _tag_names(backend, "t1a") == ["bio", "review"]

    asyncio.run(update_note(backend, node_id="t1a", remove_tags=["bio", "missing"]))
    assert _tag_names(backend, "t1a") == ["review"]


def test_update_unknown_note(backend: InMemoryBackend) -> None:
    with pytest.raises(NoteNotFoundError):
        asyncio.run(update_note(backend, node_id="nope", title="x"))


@pytest.mark.parametrize(
    ("prefix", "timestamp", "expected"),
    [
        ("", False, "entry"),
        ("", True, "[09:05:07] entry"),
        ("[AI]", False, "[AI] entry"),
        ("[AI]", True, "[AI] [09:05:07] entry"),
    ],
)
def test_format_journal_entry(prefix: str, timestamp: bool, expected: str) -> None:
    now = datetime(2026, 10, 19, 9, 5, 7)
    assert format_journal_entry("entry", prefix=prefix, timestamp=timestamp, now=now) == expected


def test_append_journal_to_existing_daily_document(backend: InMemoryBackend) -> None:
    now = datetime(2026, 10, 19, 14, 30, 0)
    result = asyncio.run(
        append_journal(backend, BridgeSettings(), content="Reviewed cells", now=now)
    )
    assert result["content"] == "[14:30:00] Reviewed cells"
    assert _child_texts(backend, "daily")[-1] == "[14:30:00] Reviewed cells"


def test_append_journal_creates_missing_daily_document(backend: InMemoryBackend) -> None:
    settings = BridgeSettings(journal_prefix="[AI]")
    now = datetime(2026, 10, 20, 8, 0, 0)
    result = asyncio.run(
        append_journal(backend, settings, content="New day", timestamp=False, now=now)
    )
    daily = asyncio.run(backend.get_daily_document(date(2026, 10, 20)))
    assert daily is not None
    assert _child_texts(backend, daily.id) == ["[AI] New day"]
    assert result["node_id"] != daily.id


class _NoDailyBackend(InMemoryBackend):
    async def get_daily_document(self, day: date) -> Node | None:
        return None


def test_append_journal_without_daily_document() -> None:
    with pytest.raises(BridgeError, match="daily document"):
        asyncio.run(append_journal(_NoDailyBackend(), BridgeSettings(), content="x"))


def test_get_status() -> None:
    assert get_status() == {
        "connected": True,
        "plugin_version": __version__,
        "knowledge_base_id": None,
    }
