"""In-memory note backend built from a JSON export."""

import itertools
import json
from collections import deque
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from remnote_bridge.core.classify.classifier import DAILY_DOCUMENT_CAPABILITY
from remnote_bridge.models.node import Node, NodeType
from remnote_bridge.models.rich_text import (
    FormattedText,
    PlainText,
    RichText,
    parse_rich_text,
)

_PRACTICE_DIRECTIONS = ("forward", "backward", "both", "none")


def plain_text(content: RichText) -> str:
    """Literal text of plain and formatted spans, used for matching."""
    return "".join(
        e.text for e in content if isinstance(e, (PlainText, FormattedText))
    )


class InMemoryBackend:
    """A mutable Rem tree held in memory.

    Implements both the read and the write backend protocols. Child order is
    insertion order; search matches case-insensitively on literal text.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._children: dict[str, list[str]] = {}
        self._aliases: dict[str, list[str]] = {}
        self._alias_ids: set[str] = set()
        self._capabilities: dict[str, set[str]] = {}
        self._documents: set[str] = set()
        self._directions: dict[str, str] = {}
        self._tags: dict[str, list[str]] = {}
        self._daily: dict[date, str] = {}
        self._ids = itertools.count(1)

    # --- Construction ---

    def add(
        self,
        node: Node,
        *,
        is_document: bool = False,
        capabilities: Sequence[str] = (),
        practice_direction: str = "none",
    ) -> Node:
        """Register ``node``, appending it to its parent's children."""
        if practice_direction not in _PRACTICE_DIRECTIONS:
            msg = f"Unknown practice direction {practice_direction!r} for {node.id!r}"
            raise ValueError(msg)
        self._nodes[node.id] = node
        self._children.setdefault(node.id, [])
        if node.parent_id is not None:
            self._children.setdefault(node.parent_id, []).append(node.id)
        if is_document:
            self._documents.add(node.id)
        if capabilities:
            self._capabilities[node.id] = set(capabilities)
        self._directions[node.id] = practice_direction
        return node

    def add_alias(self, node_id: str, text: RichText) -> Node:
        alias = Node(id=f"{node_id}_alias_{len(self._aliases.get(node_id, []))}", text=text)
        self._nodes[alias.id] = alias
        self._children.setdefault(alias.id, [])
        self._aliases.setdefault(node_id, []).append(alias.id)
        self._alias_ids.add(alias.id)
        return alias

    def set_daily_document(self, day: date, node_id: str) -> None:
        self._daily[day] = node_id
        self._documents.add(node_id)
        self._capabilities.setdefault(node_id, set()).add(DAILY_DOCUMENT_CAPABILITY)

    def tags_of(self, node_id: str) -> list[str]:
        return list(self._tags.get(node_id, []))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryBackend":
        """Build a backend from export data.

        Expected shape::

            {"nodes": [{"id": "a", "text": [...], "backText": [...],
                        "type": "concept", "children": ["b"],
                        "isDocument": true, "capabilities": [...],
                        "practiceDirection": "forward",
                        "aliases": [[...rich text...]], "tags": ["t"]}],
             "dailyDocuments": {"2026-10-19": "a"}}

        Raises:
            ValueError: A ``children``, ``tags`` or ``dailyDocuments`` entry names
                an unknown id, or a node is unreachable from the top level.
        """
        raw_nodes = data.get("nodes", [])
        parents: dict[str, str] = {}
        for raw in raw_nodes:
            for child_id in raw.get("children", []):
                parents[child_id] = raw["id"]

        daily_ids = set(data.get("dailyDocuments", {}).values())
        known = {raw["id"] for raw in raw_nodes}
        dangling = sorted((set(parents) | _all_tag_ids(raw_nodes) | daily_ids) - known)
        if dangling:
            msg = f"Unknown node ids referenced: {dangling!r}"
            raise ValueError(msg)

        backend = cls()
        by_id = {raw["id"]: raw for raw in raw_nodes}
        # Insert parents before their children so sibling order follows "children" lists.
        ordered: list[str] = []
        seen: set[str] = set()
        pending = deque(raw["id"] for raw in raw_nodes if raw["id"] not in parents)
        while pending:
            node_id = pending.popleft()
            if node_id in seen:
                continue
            seen.add(node_id)
            ordered.append(node_id)
            pending.extend(by_id[node_id].get("children", []))

        if len(ordered) != len(by_id):
            unreachable = sorted(set(by_id) - seen)
            msg = f"Nodes not reachable from any top-level node: {unreachable!r}"
            raise ValueError(msg)

        for node_id in ordered:
            raw = by_id[node_id]
            backend.add(
                Node(
                    id=node_id,
                    text=parse_rich_text(raw.get("text")),
                    back_text=parse_rich_text(raw.get("backText")),
                    type=NodeType(raw.get("type", "default")),
                    parent_id=parents.get(node_id),
                ),
                is_document=bool(raw.get("isDocument", False)),
                capabilities=raw.get("capabilities", ()),
                practice_direction=raw.get("practiceDirection", "none"),
            )
            for alias in raw.get("aliases", []):
                backend.add_alias(node_id, parse_rich_text(alias))

        for raw in raw_nodes:
            backend._tags[raw["id"]] = list(raw.get("tags", []))

        for day, node_id in data.get("dailyDocuments", {}).items():
            backend.set_daily_document(date.fromisoformat(day), node_id)

        logger.debug("Loaded {} nodes into memory", len(ordered))
        return backend

    # --- NodeStoreProtocol ---

    async def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    async def get_children(self, node: Node) -> Sequence[Node]:
        return [self._nodes[c] for c in self._children.get(node.id, [])]

    async def get_parent(self, node: Node) -> Node | None:
        current = self._nodes.get(node.id, node)
        if current.parent_id is None:
            return None
        return self._nodes.get(current.parent_id)

    async def get_aliases(self, node: Node) -> Sequence[Node]:
        return [self._nodes[a] for a in self._aliases.get(node.id, [])]

    async def has_capability(self, node: Node, capability: str) -> bool:
        return capability in self._capabilities.get(node.id, ())

    async def is_document(self, node: Node) -> bool:
        return node.id in self._documents

    async def get_practice_direction(self, node: Node) -> str:
        return self._directions.get(node.id, "none")

    async def query_by_text(self, text: str, fetch_limit: int) -> Sequence[Node]:
        needle = text.strip().lower()
        if not needle:
            return []
        hits: list[Node] = []
        for node in self._nodes.values():
            if node.id in self._alias_ids:
                continue
            haystack = f"{plain_text(node.text)} {plain_text(node.back_text)}".lower()
            if needle in haystack:
                hits.append(node)
                if len(hits) >= fetch_limit:
                    break
        return hits

    async def find_by_exact_name(self, name: str) -> Node | None:
        for node in self._nodes.values():
            if node.id not in self._alias_ids and plain_text(node.text) == name:
                return node
        return None

    async def get_tagged_nodes(self, tag: Node) -> Sequence[Node]:
        return [
            self._nodes[node_id]
            for node_id, tag_ids in self._tags.items()
            if tag.id in tag_ids and node_id in self._nodes
        ]

    # --- NodeWriterProtocol ---

    async def create_node(self, text: RichText, *, parent_id: str | None = None) -> Node:
        node_id = f"rem_{next(self._ids)}"
        while node_id in self._nodes:
            node_id = f"rem_{next(self._ids)}"
        return self.add(Node(id=node_id, text=text, parent_id=parent_id))

    async def set_text(self, node: Node, text: RichText) -> Node:
        updated = replace(self._nodes[node.id], text=text)
        self._nodes[node.id] = updated
        return updated

    async def add_tag(self, node: Node, tag: Node) -> None:
        tags = self._tags.setdefault(node.id, [])
        if tag.id not in tags:
            tags.append(tag.id)

    async def remove_tag(self, node: Node, tag: Node) -> None:
        tags = self._tags.get(node.id, [])
        if tag.id in tags:
            tags.remove(tag.id)

    async def get_daily_document(self, day: date) -> Node | None:
        node_id = self._daily.get(day)
        if node_id is None:
            node = await self.create_node((PlainText(day.isoformat()),))
            self.set_daily_document(day, node.id)
            return node
        return self._nodes.get(node_id)


def _all_tag_ids(raw_nodes: list[dict[str, Any]]) -> set[str]:
    return {tag_id for raw in raw_nodes for tag_id in raw.get("tags", [])}


def load_backend(path: Path) -> InMemoryBackend:
    """Read a JSON export file into an in-memory backend."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return InMemoryBackend.from_dict(data)
