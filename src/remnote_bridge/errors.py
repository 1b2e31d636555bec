"""Exceptions raised by the RemNote bridge."""


class RemBridgeError(Exception):
    """Base class for errors reported back to bridge clients."""


class NoteNotFoundError(RemBridgeError):
    """A read or update targeted a Rem id that does not exist."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Note not found: {node_id}")
        self.node_id = node_id


class InvalidParameterError(RemBridgeError, ValueError):
    """A request parameter failed validation before any backend I/O."""


class InvalidIncludeContentError(InvalidParameterError):
    """Unsupported content inclusion mode."""

    def __init__(self, operation: str, value: object, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"Invalid include_content for {operation}: {value}. "
            f"Expected one of: {', '.join(allowed)}"
        )
        self.allowed = allowed


class BridgeError(RemBridgeError):
    """The remote bridge rejected a request."""
