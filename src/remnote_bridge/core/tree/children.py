"""Select the children of a Rem that are worth rendering."""

from remnote_bridge.core.classify.classifier import classify, probe_capability, title_and_detail
from remnote_bridge.models.node import Category, Node
from remnote_bridge.protocols import NodeStoreProtocol

# Powerup scaffolding Rems that hold metadata rather than user content.
METADATA_CAPABILITIES = (
    "powerup_property",
    "powerup_property_list_item",
    "powerup_slot",
    "powerup_enum",
)


async def is_metadata_node(store: NodeStoreProtocol, node: Node) -> bool:
    for capability in METADATA_CAPABILITIES:
        if await probe_capability(store, node, capability):
            return True
    return False


async def is_empty_text_leaf(store: NodeStoreProtocol, node: Node) -> bool:
    """True for a plain text Rem with no title, no detail and no children."""
    if await classify(store, node) is not Category.TEXT:
        return False
    parts = await title_and_detail(store, node)
    if parts.title or parts.detail:
        return False
    children = await store.get_children(node)
    return not children


async def get_renderable_children(
    store: NodeStoreProtocol, node: Node, child_limit: int
) -> list[Node]:
    """Visible children of ``node``, capped at ``child_limit``.

    Metadata Rems are skipped before the cap is applied; trailing empty text
    leaves are trimmed after it so no blank bullets dangle at the end.
    """
    children = await store.get_children(node)
    if not children:
        return []

    visible = [c for c in children if not await is_metadata_node(store, c)]
    limited = visible[: max(child_limit, 0)]
    while limited and await is_empty_text_leaf(store, limited[-1]):
        limited.pop()
    return limited
