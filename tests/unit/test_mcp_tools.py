"""Tests for MCP tool core functions."""

import asyncio
from pathlib import Path

import pytest

from remnote_bridge.api import HttpBridgeBackend
from remnote_bridge.backend.memory import InMemoryBackend
from remnote_bridge.config import BridgeSettings
from remnote_bridge.mcp.server import (
    open_backend,
    remnote_append_journal,
    remnote_create_note,
    remnote_read_note,
    remnote_search,
    remnote_search_by_tag,
    remnote_update_note,
)


def test_remnote_search_returns_sorted_results(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search(backend, query="cell"))
    assert result["count"] == 3
    assert [r["id"] for r in result["results"]] == ["c1", "portal1", "j1"]
    first = result["results"][0]
    assert first["headline"] == "Cell :: Basic unit of life"
    assert first["category"] == "concept"


def test_remnote_search_empty_query(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search(backend, query="   "))
    assert result == {"error": "No search query provided.", "results": [], "count": 0}


def test_remnote_search_invalid_include_content(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search(backend, query="cell", include_content="xml"))
    assert result["error"].startswith("Invalid include_content for search: xml.")
    assert result["count"] == 0


def test_remnote_search_with_structured_content(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search(backend, query="biology", include_content="structured"))
    (doc,) = result["results"]
    assert [c["id"] for c in doc["content_structured"]] == ["c1", "d1", "t1"]


def test_remnote_search_by_tag(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search_by_tag(backend, tag="#bio", include_content="markdown"))
    assert result["count"] == 1
    daily = result["results"][0]
    assert daily["id"] == "daily"
    assert daily["category"] == "dailyDocument"
    assert daily["content"] == "- Studied **cells**\n"


def test_remnote_search_by_blank_tag(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_search_by_tag(backend, tag=""))
    assert result == {"error": "Tag cannot be empty", "results": [], "count": 0}


def test_remnote_read_note_returns_markdown(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_read_note(backend, node_id="t1", depth=1))
    assert "error" not in result
    assert result["title"] == "Mitochondria of the Cell"
    assert result["content"] == "- Powerhouse\n"
    assert result["parent_title"] == "Biology"


def test_remnote_read_note_unknown_id(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_read_note(backend, node_id="missing"))
    assert result == {"error": "Note not found: missing"}


def test_remnote_read_note_rejects_structured(backend: InMemoryBackend) -> None:
    result = asyncio.run(
        remnote_read_note(backend, node_id="doc1", include_content="structured")
    )
    assert "error" in result
    assert "Expected one of: none, markdown" in result["error"]


def test_remnote_create_then_read(backend: InMemoryBackend) -> None:
    created = asyncio.run(
        remnote_create_note(
            backend, BridgeSettings(), title="Nucleus", content="Holds DNA", parent_id="doc1"
        )
    )
    read = asyncio.run(remnote_read_note(backend, node_id=created["node_id"]))
    assert read["title"] == "Nucleus"
    assert read["content"] == "- Holds DNA\n"
    assert read["parent_id"] == "doc1"


def test_remnote_update_note_unknown_id(backend: InMemoryBackend) -> None:
    result = asyncio.run(remnote_update_note(backend, node_id="missing", title="x"))
    assert result == {"error": "Note not found: missing"}


def test_remnote_append_journal(backend: InMemoryBackend) -> None:
    result = asyncio.run(
        remnote_append_journal(backend, BridgeSettings(), content="Hello", timestamp=False)
    )
    assert result["content"] == "Hello"
    assert "error" not in result


def test_open_backend_prefers_export_file(
    export_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("REMNOTE_BRIDGE_EXPORT", str(export_file))
    monkeypatch.delenv("REMNOTE_BRIDGE_URL", raising=False)
    store = open_backend(BridgeSettings())
    assert isinstance(store, InMemoryBackend)


def test_open_backend_uses_bridge_when_url_set(
    export_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("REMNOTE_BRIDGE_EXPORT", str(export_file))
    monkeypatch.setenv("REMNOTE_BRIDGE_URL", "http://localhost:9999")
    monkeypatch.setattr("remnote_bridge.api.API_TOKEN_FILES", [])
    store = open_backend(BridgeSettings(bridge_url="http://localhost:9999"))
    assert isinstance(store, HttpBridgeBackend)
    assert store.base_url == "http://localhost:9999"
