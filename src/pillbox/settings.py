"""Static configuration for pillbox.

All user-editable settings (styles, mention keywords, seed profiles, logging)
live in a single JSON file. ``PILLBOX_CONFIG`` overrides the location;
otherwise ``config.json`` in the working directory is used when present.
"""

import json
import os

from pillbox.core.config import MentionConfig, RenderConfig

PROJECT_ROOT = os.getcwd()

_EXPLICIT_CONFIG_PATH = os.getenv("PILLBOX_CONFIG")
CONFIG_PATH = _EXPLICIT_CONFIG_PATH or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load the config file, or return an empty config when none exists."""

    if not os.path.exists(CONFIG_PATH):
        if _EXPLICIT_CONFIG_PATH:
            raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Memo size bounds how many bodies the resolver keeps resolved at once.
_rendering = _CONFIG.get("rendering", {})
RENDER_CONFIG = RenderConfig(memo_size=int(_rendering.get("memo_size", 256)))

# Rich style strings per range kind; missing keys keep the renderer defaults.
STYLES = dict(_rendering.get("styles", {}))

# Mention tokens that are not user ids.
# - everyone_keywords: tokens such as "@room" that address the whole chat
# - rooms: usernames (without "@") that name chats rather than people
_mentions = _CONFIG.get("mentions", {})
MENTION_CONFIG = MentionConfig(
    everyone_keywords=frozenset(
        k.lower() for k in _mentions.get("everyone_keywords", ["@room", "@all", "@everyone"])
    ),
    room_usernames=frozenset(r.lstrip("@").lower() for r in _mentions.get("rooms", [])),
)

# Seed profiles for the CLI renderer, keyed by mention identifier.
PROFILES = {str(k): str(v) for k, v in _CONFIG.get("profiles", {}).items()}

# Watcher settings: how many recent messages are re-rendered on profile changes.
_watch = _CONFIG.get("watch", {})
WATCH_RECENT_MESSAGES = int(_watch.get("recent_messages", 50))
WATCH_SHOW_LINKS = bool(_watch.get("show_links", False))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
