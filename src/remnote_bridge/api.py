"""HTTP client for a RemNote bridge endpoint."""

import asyncio
import json
import threading
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any

import requests
from loguru import logger

from remnote_bridge.config import API_TOKEN_FILES, DEFAULT_BRIDGE_URL
from remnote_bridge.errors import BridgeError
from remnote_bridge.models.node import Node, NodeType
from remnote_bridge.models.rich_text import RichText, parse_rich_text, rich_text_to_json


def _read_token(candidates: Sequence[Path]) -> tuple[str | None, str | None]:
    for token_path in candidates:
        try:
            return token_path.read_text(encoding="utf-8").strip(), str(token_path)
        except FileNotFoundError:
            pass
    return None, None


def node_from_json(data: dict[str, Any]) -> Node:
    """Build a Node from the bridge's JSON representation."""
    return Node(
        id=data["id"],
        text=parse_rich_text(data.get("text")),
        back_text=parse_rich_text(data.get("backText")),
        type=NodeType(data.get("type") or "default"),
        parent_id=data.get("parent"),
    )


class HttpBridgeBackend:
    """Note backend that forwards every call to a bridge over HTTP.

    Each call posts ``{"action": ..., "payload": ...}`` and expects either
    ``{"result": ...}`` or ``{"error": "..."}`` back. Blocking requests run
    in a worker thread so the async core is not stalled; the shared session
    is used by one thread at a time.
    """

    def __init__(self, base_url: str = DEFAULT_BRIDGE_URL, *, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.sess = requests.Session()
        self._sess_lock = threading.Lock()

        self.api_token, token_name = _read_token(API_TOKEN_FILES)
        logger.debug(
            "Bridge client ready: url {!r}, token from {!r}", self.base_url, token_name
        )

    def call(self, action: str, payload: dict[str, Any]) -> Any:
        """Invoke a bridge action and return its ``result``."""
        logger.debug("Bridge request: {!r} {}", action, repr(payload)[:64])

        body: dict[str, Any] = {"action": action, "payload": payload}
        if self.api_token:
            body["token"] = self.api_token

        with self._sess_lock:
            r = self.sess.post(
                f"{self.base_url}/bridge", json.dumps(body), timeout=self.timeout
            )
            r.raise_for_status()
            rv: dict[str, Any] = r.json()
        if rv.get("error"):
            msg = f"Bridge call failed: ({action!r}, {payload!r}) -> {rv['error']!r}"
            raise BridgeError(msg)
        return rv.get("result")

    async def _acall(self, action: str, payload: dict[str, Any]) -> Any:
        return await asyncio.to_thread(self.call, action, payload)

    async def _node_or_none(self, action: str, payload: dict[str, Any]) -> Node | None:
        data = await self._acall(action, payload)
        return node_from_json(data) if data else None

    async def _nodes(self, action: str, payload: dict[str, Any]) -> list[Node]:
        data = await self._acall(action, payload)
        return [node_from_json(item) for item in data or []]

    # --- NodeStoreProtocol ---

    async def get_node(self, node_id: str) -> Node | None:
        return await self._node_or_none("get_node", {"id": node_id})

    async def get_children(self, node: Node) -> Sequence[Node]:
        return await self._nodes("get_children", {"id": node.id})

    async def get_parent(self, node: Node) -> Node | None:
        return await self._node_or_none("get_parent", {"id": node.id})

    async def get_aliases(self, node: Node) -> Sequence[Node]:
        return await self._nodes("get_aliases", {"id": node.id})

    async def has_capability(self, node: Node, capability: str) -> bool:
        return bool(
            await self._acall("has_capability", {"id": node.id, "capability": capability})
        )

    async def is_document(self, node: Node) -> bool:
        return bool(await self._acall("is_document", {"id": node.id}))

    async def get_practice_direction(self, node: Node) -> str:
        return await self._acall("get_practice_direction", {"id": node.id}) or "none"

    async def query_by_text(self, text: str, fetch_limit: int) -> Sequence[Node]:
        return await self._nodes("query_by_text", {"text": text, "limit": fetch_limit})

    async def find_by_exact_name(self, name: str) -> Node | None:
        return await self._node_or_none("find_by_exact_name", {"name": name})

    async def get_tagged_nodes(self, tag: Node) -> Sequence[Node]:
        return await self._nodes("get_tagged_nodes", {"id": tag.id})

    # --- NodeWriterProtocol ---

    async def create_node(self, text: RichText, *, parent_id: str | None = None) -> Node:
        data = await self._acall(
            "create_node", {"text": rich_text_to_json(text), "parentId": parent_id}
        )
        if not data:
            msg = "Bridge did not return the created node"
            raise BridgeError(msg)
        return node_from_json(data)

    async def set_text(self, node: Node, text: RichText) -> Node:
        data = await self._acall("set_text", {"id": node.id, "text": rich_text_to_json(text)})
        return node_from_json(data)

    async def add_tag(self, node: Node, tag: Node) -> None:
        await self._acall("add_tag", {"id": node.id, "tagId": tag.id})

    async def remove_tag(self, node: Node, tag: Node) -> None:
        await self._acall("remove_tag", {"id": node.id, "tagId": tag.id})

    async def get_daily_document(self, day: date) -> Node | None:
        return await self._node_or_none("get_daily_document", {"date": day.isoformat()})
