"""Protocols for the note backends consumed by the rendering core."""

from collections.abc import Sequence
from datetime import date
from typing import Protocol, runtime_checkable

from remnote_bridge.models.node import Node
from remnote_bridge.models.rich_text import RichText


@runtime_checkable
class NodeStoreProtocol(Protocol):
    """Read access to the host application's Rem tree."""

    async def get_node(self, node_id: str) -> Node | None:
        """Look up a Rem by id, returning None when it does not exist."""
        ...

    async def get_children(self, node: Node) -> Sequence[Node]:
        """Direct children in display order."""
        ...

    async def get_parent(self, node: Node) -> Node | None:
        ...

    async def get_aliases(self, node: Node) -> Sequence[Node]:
        """Alias Rems whose text holds the alternate names."""
        ...

    async def has_capability(self, node: Node, capability: str) -> bool:
        """Probe a powerup/capability flag. May raise when unsupported."""
        ...

    async def is_document(self, node: Node) -> bool:
        ...

    async def get_practice_direction(self, node: Node) -> str:
        """One of "forward", "backward", "both" or "none"."""
        ...

    async def query_by_text(self, text: str, fetch_limit: int) -> Sequence[Node]:
        """Free-text search. Ordering is the backend's relevance proxy."""
        ...

    async def find_by_exact_name(self, name: str) -> Node | None:
        ...

    async def get_tagged_nodes(self, tag: Node) -> Sequence[Node]:
        """Rems carrying ``tag``."""
        ...


@runtime_checkable
class NodeWriterProtocol(Protocol):
    """Write access used by the note creation and update operations."""

    async def create_node(self, text: RichText, *, parent_id: str | None = None) -> Node:
        ...

    async def set_text(self, node: Node, text: RichText) -> Node:
        """Replace a Rem's text, returning the updated Rem."""
        ...

    async def add_tag(self, node: Node, tag: Node) -> None:
        ...

    async def remove_tag(self, node: Node, tag: Node) -> None:
        ...

    async def get_daily_document(self, day: date) -> Node | None:
        """The daily document for ``day``, created on demand where supported."""
        ...


@runtime_checkable
class NoteBackendProtocol(NodeStoreProtocol, NodeWriterProtocol, Protocol):
    """A backend offering both read and write access."""
