"""Shared test fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest

from remnote_bridge.backend.memory import InMemoryBackend

SAMPLE_EXPORT: dict[str, Any] = {
    "nodes": [
        {
            "id": "doc1",
            "text": ["Biology"],
            "isDocument": True,
            "children": ["c1", "d1", "t1"],
        },
        {
            "id": "c1",
            "type": "concept",
            "text": ["Cell"],
            "backText": ["Basic unit of life"],
            "practiceDirection": "forward",
            "aliases": [["Cellula"], []],
        },
        {
            "id": "d1",
            "type": "descriptor",
            "text": ["Size", {"i": "s"}, "Microscopic"],
        },
        {
            "id": "t1",
            "text": ["Mitochondria of the ", {"i": "q", "_id": "c1"}],
            "children": ["t1a"],
        },
        {"id": "t1a", "text": ["Powerhouse"]},
        {
            "id": "daily",
            "text": ["October 19th, 2026"],
            "isDocument": True,
            "capabilities": ["daily_document"],
            "children": ["j1"],
        },
        {
            "id": "j1",
            "text": ["Studied ", {"i": "m", "text": "cells", "b": True}],
            "tags": ["tag_bio"],
        },
        {"id": "portal1", "type": "portal", "text": ["Embedded cells"]},
        {"id": "tag_bio", "text": ["bio"]},
    ],
    "dailyDocuments": {"2026-10-19": "daily"},
}


@pytest.fixture
def backend() -> InMemoryBackend:
    """Return an in-memory backend loaded with the sample export."""
    return InMemoryBackend.from_dict(SAMPLE_EXPORT)


@pytest.fixture
def export_file(tmp_path: Path) -> Path:
    """Write the sample export to disk and return its path."""
    path = tmp_path / "export.json"
    path.write_text(json.dumps(SAMPLE_EXPORT))
    return path
