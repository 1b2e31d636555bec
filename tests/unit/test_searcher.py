"""Tests for search and search-by-tag result assembly."""

import asyncio

import pytest

from remnote_bridge.backend.memory import InMemoryBackend
from remnote_bridge.core.search.searcher import (
    build_content_options,
    oversampled_fetch_limit,
    search_by_tag,
    search_notes,
    sort_results,
)
from remnote_bridge.errors import InvalidIncludeContentError, InvalidParameterError
from remnote_bridge.models.node import Category, Node, NodeType, NoteSummary
from remnote_bridge.models.rich_text import parse_rich_text
from tests.unit.fakes import ScriptedSearchBackend


def _scripted(*nodes: tuple[str, NodeType, bool]) -> ScriptedSearchBackend:
    backend = ScriptedSearchBackend()
    for node_id, node_type, is_document in nodes:
        backend.add(
            Node(id=node_id, text=parse_rich_text([node_id.upper()]), type=node_type),
            is_document=is_document,
        )
    return backend


def test_search_sorts_by_category(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_notes(backend, query="cell"))
    assert [(r.id, r.category) for r in results] == [
        ("c1", Category.CONCEPT),
        ("portal1", Category.PORTAL),
        ("j1", Category.TEXT),
    ]


def test_search_result_metadata(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_notes(backend, query="cell"))
    assert results[0].to_dict() == {
        "id": "c1",
        "title": "Cell",
        "headline": "Cell :: Basic unit of life",
        "parent_id": "doc1",
        "parent_title": "Biology",
        "aliases": ["Cellula"],
        "category": "concept",
        "card_direction": "forward",
    }
    assert results[2].headline == "Studied **cells**"
    assert results[2].parent_title == "October 19th, 2026"


def test_top_level_hit_has_no_parent_keys(backend: InMemoryBackend) -> None:
    (result,) = asyncio.run(search_notes(backend, query="biology"))
    assert result.id == "doc1"
    assert "parent_id" not in result.to_dict()
    assert "parent_title" not in result.to_dict()


def test_backend_order_kept_within_category() -> None:
    backend = _scripted(
        ("t_a", NodeType.DEFAULT, False),
        ("doc", NodeType.DEFAULT, True),
        ("t_b", NodeType.DEFAULT, False),
        ("con", NodeType.CONCEPT, False),
        ("desc", NodeType.DESCRIPTOR, False),
    )
    backend.hits = ["t_a", "doc", "t_b", "con", "desc"]
    results = asyncio.run(search_notes(backend, query="anything"))
    assert [r.id for r in results] == ["doc", "con", "desc", "t_a", "t_b"]


def test_duplicate_hits_are_removed() -> None:
    backend = _scripted(("x", NodeType.DEFAULT, False), ("y", NodeType.DEFAULT, False))
    backend.hits = ["x", "x", "y", "x"]
    results = asyncio.run(search_notes(backend, query="q"))
    assert [r.id for r in results] == ["x", "y"]


def test_limit_applied_after_sort_with_oversampled_fetch() -> None:
    backend = _scripted(
        ("t_a", NodeType.DEFAULT, False),
        ("t_b", NodeType.DEFAULT, False),
        ("con", NodeType.CONCEPT, False),
    )
    backend.hits = ["t_a", "t_b", "con"]
    results = asyncio.run(search_notes(backend, query="q", limit=2))
    assert backend.fetch_limits == [4]
    assert [r.id for r in results] == ["con", "t_a"]


def test_default_limit_fetches_twice_as_many() -> None:
    backend = ScriptedSearchBackend()
    asyncio.run(search_notes(backend, query="q"))
    assert backend.fetch_limits == [100]
    assert oversampled_fetch_limit(0) == 0
    assert oversampled_fetch_limit(7) == 14


def test_invalid_include_content_rejected_before_search() -> None:
    backend = ScriptedSearchBackend()
    with pytest.raises(InvalidIncludeContentError) as exc_info:
        asyncio.run(search_notes(backend, query="q", include_content="html"))
    assert str(exc_info.value) == (
        "Invalid include_content for search: html. Expected one of: none, markdown, structured"
    )
    assert backend.fetch_limits == []


def test_markdown_content_for_hits(backend: InMemoryBackend) -> None:
    (doc,) = asyncio.run(search_notes(backend, query="biology", include_content="markdown"))
    assert doc.content == (
        "- Cell :: Basic unit of life\n- Size ;; Microscopic\n- Mitochondria of the Cell\n"
    )
    assert doc.to_dict()["content_properties"] == {
        "children_rendered": 3,
        "children_total": 3,
        "content_truncated": False,
    }


def test_markdown_mode_omits_content_for_leaf_hits(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_notes(backend, query="cell", include_content="markdown"))
    concept = results[0].to_dict()
    assert "content" not in concept
    assert "content_properties" not in concept


def test_markdown_content_truncated_per_hit(backend: InMemoryBackend) -> None:
    (doc,) = asyncio.run(
        search_notes(backend, query="biology", include_content="markdown", max_content_length=30)
    )
    assert doc.content == "- Cell :: Basic unit of life\n"
    assert doc.content_properties is not None
    assert doc.content_properties.content_truncated is True
    assert doc.content_properties.children_total == 3


def test_structured_content_for_hits(backend: InMemoryBackend) -> None:
    (doc,) = asyncio.run(
        search_notes(backend, query="biology", include_content="structured", depth=2)
    )
    structured = doc.to_dict()["content_structured"]
    assert [e["id"] for e in structured] == ["c1", "d1", "t1"]
    assert structured[2]["children"][0]["title"] == "Powerhouse"
    assert doc.content is None


def test_structured_mode_omits_empty_content(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_notes(backend, query="cell", include_content="structured"))
    assert all("content_structured" not in r.to_dict() for r in results)


def test_sort_results_daily_then_portal_then_text() -> None:
    categories = [Category.TEXT, Category.PORTAL, Category.DAILY_DOCUMENT]
    items = [
        NoteSummary(id=str(c), title="x", headline="x", category=c, source_index=i)
        for i, c in enumerate(categories)
    ]
    assert [i.id for i in sort_results(items)] == ["dailyDocument", "portal", "text"]


def test_content_options_defaults() -> None:
    options = build_content_options()
    assert options.include_content == "none"
    assert (options.depth, options.child_limit, options.max_content_length) == (1, 20, 3000)


def test_search_by_tag_reports_containing_document(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_by_tag(backend, tag="bio"))
    assert [(r.id, r.category) for r in results] == [("daily", Category.DAILY_DOCUMENT)]


def test_search_by_tag_accepts_hash_prefix(backend: InMemoryBackend) -> None:
    results = asyncio.run(search_by_tag(backend, tag="  #bio "))
    assert [r.id for r in results] == ["daily"]


def test_search_by_unknown_tag_is_empty(backend: InMemoryBackend) -> None:
    assert asyncio.run(search_by_tag(backend, tag="chemistry")) == []


def test_search_by_blank_tag_is_rejected(backend: InMemoryBackend) -> None:
    with pytest.raises(InvalidParameterError, match="Tag cannot be empty"):
        asyncio.run(search_by_tag(backend, tag="   "))


def test_search_by_tag_dedupes_and_falls_back_to_ancestors() -> None:
    backend = InMemoryBackend.from_dict(
        {
            "nodes": [
                {"id": "tag", "text": ["#todo"]},
                {"id": "doc", "text": ["Doc"], "isDocument": True, "children": ["a", "b"]},
                {"id": "a", "text": ["A"], "tags": ["tag"]},
                {"id": "b", "text": ["B"], "tags": ["tag"]},
                {"id": "folder", "text": ["Folder"], "children": ["inner"]},
                {"id": "inner", "text": ["Inner"], "children": ["deep"]},
                {"id": "deep", "text": ["Deep"], "tags": ["tag"]},
                {"id": "loose", "text": ["Loose"], "tags": ["tag"]},
            ]
        }
    )
    results = asyncio.run(search_by_tag(backend, tag="todo"))
    assert [r.id for r in results] == ["doc", "inner", "loose"]
