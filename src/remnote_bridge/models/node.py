"""Domain models for the RemNote bridge."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from remnote_bridge.models.rich_text import RichText


class NodeType(StrEnum):
    """Rem type tag as stored by the host application."""

    DEFAULT = "default"
    CONCEPT = "concept"
    DESCRIPTOR = "descriptor"
    PORTAL = "portal"


class Category(StrEnum):
    """Semantic classification of a Rem."""

    DOCUMENT = "document"
    DAILY_DOCUMENT = "dailyDocument"
    CONCEPT = "concept"
    DESCRIPTOR = "descriptor"
    PORTAL = "portal"
    TEXT = "text"


class CardDirection(StrEnum):
    """Flashcard practice direction as reported to clients."""

    FORWARD = "forward"
    REVERSE = "reverse"
    BIDIRECTIONAL = "bidirectional"


@dataclass(frozen=True)
class Node:
    """A single Rem as read from the backend."""

    id: str
    text: RichText = ()
    back_text: RichText = ()
    type: NodeType = NodeType.DEFAULT
    parent_id: str | None = None


@dataclass(frozen=True)
class TitleDetail:
    """Front and optional back side of a Rem."""

    title: str
    detail: str | None = None


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a markdown subtree render."""

    content: str
    children_rendered: int
    truncated_by_length: bool


@dataclass(frozen=True)
class ContentProperties:
    """Summary statistics reported next to rendered content."""

    children_rendered: int
    children_total: int
    content_truncated: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "children_rendered": self.children_rendered,
            "children_total": self.children_total,
            "content_truncated": self.content_truncated,
        }


@dataclass(frozen=True)
class StructuredContentNode:
    """One entry of a structured subtree render."""

    id: str
    title: str
    headline: str
    category: Category
    aliases: tuple[str, ...] = ()
    card_direction: CardDirection | None = None
    children: tuple["StructuredContentNode", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting empty optional keys.

        A missing ``children`` key means nothing was rendered below this
        entry (leaf or depth exhausted).
        """
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "headline": self.headline,
            "category": str(self.category),
        }
        if self.aliases:
            out["aliases"] = list(self.aliases)
        if self.card_direction:
            out["card_direction"] = str(self.card_direction)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@dataclass(frozen=True)
class NoteSummary:
    """A Rem with its display metadata and optional rendered content.

    Shared by search results and read-note responses.
    """

    id: str
    title: str
    headline: str
    category: Category
    parent_id: str | None = None
    parent_title: str | None = None
    aliases: tuple[str, ...] = ()
    card_direction: CardDirection | None = None
    content: str | None = None
    content_structured: tuple[StructuredContentNode, ...] = ()
    content_properties: ContentProperties | None = None
    source_index: int = field(default=0, compare=False)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "headline": self.headline,
        }
        if self.parent_id is not None:
            out["parent_id"] = self.parent_id
            out["parent_title"] = self.parent_title
        if self.aliases:
            out["aliases"] = list(self.aliases)
        out["category"] = str(self.category)
        if self.card_direction:
            out["card_direction"] = str(self.card_direction)
        if self.content is not None:
            out["content"] = self.content
        if self.content_structured:
            out["content_structured"] = [c.to_dict() for c in self.content_structured]
        if self.content_properties is not None:
            out["content_properties"] = self.content_properties.to_dict()
        return out
