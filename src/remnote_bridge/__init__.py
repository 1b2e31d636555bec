"""Render RemNote documents as text, markdown and structured JSON."""

__version__ = "0.1.0"

from remnote_bridge.backend.memory import InMemoryBackend  # noqa: E402
from remnote_bridge.protocols import (  # noqa: E402
    NodeStoreProtocol,
    NodeWriterProtocol,
    NoteBackendProtocol,
)

__all__ = [
    "InMemoryBackend",
    "NodeStoreProtocol",
    "NodeWriterProtocol",
    "NoteBackendProtocol",
    "__version__",
]
