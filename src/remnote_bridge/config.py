"""Configuration constants and settings for the RemNote bridge."""

import os
from dataclasses import dataclass
from pathlib import Path

# Search defaults.
DEFAULT_SEARCH_LIMIT = 50
# Fetch extra results before dedupe so the unique set is less likely to come up short.
SEARCH_OVERSAMPLE_FACTOR = 2
DEFAULT_SEARCH_DEPTH = 1
DEFAULT_SEARCH_CHILD_LIMIT = 20
DEFAULT_SEARCH_MAX_CONTENT_LENGTH = 3000

# Read defaults.
DEFAULT_DEPTH = 5
DEFAULT_CHILD_LIMIT = 100
DEFAULT_READ_MAX_CONTENT_LENGTH = 100000

# Upper bound for childrenTotal counting.
CHILDREN_TOTAL_CAP = 2000

DEFAULT_AUTO_TAG = "MCP"
DEFAULT_JOURNAL_PREFIX = ""
DEFAULT_BRIDGE_URL = "http://127.0.0.1:3002"

# Bridge token location. First file found is used.
API_TOKEN_FILES: list[Path] = [
    Path("~/.config/remnote-bridge-token.txt").expanduser(),
    Path("~/.config/secret/remnote-bridge-token.txt").expanduser(),
]

# JSON export used by the CLI and MCP server when no bridge URL is configured.
DEFAULT_EXPORT_FILE = Path("~/.local/share/remnote-bridge/export.json").expanduser()


@dataclass(frozen=True)
class BridgeSettings:
    """User-facing settings for write operations and the bridge connection."""

    auto_tag_enabled: bool = True
    auto_tag: str = DEFAULT_AUTO_TAG
    journal_prefix: str = DEFAULT_JOURNAL_PREFIX
    journal_timestamp: bool = True
    default_parent_id: str = ""
    bridge_url: str = DEFAULT_BRIDGE_URL


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> BridgeSettings:
    """Build settings from ``REMNOTE_BRIDGE_*`` environment variables."""
    return BridgeSettings(
        auto_tag_enabled=_env_bool("REMNOTE_BRIDGE_AUTO_TAG_ENABLED", True),
        auto_tag=os.environ.get("REMNOTE_BRIDGE_AUTO_TAG", DEFAULT_AUTO_TAG),
        journal_prefix=os.environ.get("REMNOTE_BRIDGE_JOURNAL_PREFIX", DEFAULT_JOURNAL_PREFIX),
        journal_timestamp=_env_bool("REMNOTE_BRIDGE_JOURNAL_TIMESTAMP", True),
        default_parent_id=os.environ.get("REMNOTE_BRIDGE_DEFAULT_PARENT", ""),
        bridge_url=os.environ.get("REMNOTE_BRIDGE_URL", DEFAULT_BRIDGE_URL),
    )


def resolve_export_file() -> Path:
    """Return the JSON export path from ``REMNOTE_BRIDGE_EXPORT`` or the default."""
    env = os.environ.get("REMNOTE_BRIDGE_EXPORT")
    return Path(env).expanduser() if env else DEFAULT_EXPORT_FILE
