"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RenderConfig:
    """Settings for the memoised resolver."""

    memo_size: int = 256


@dataclass(frozen=True)
class MentionConfig:
    """How formatter adapters classify mention tokens that are not user ids."""

    everyone_keywords: frozenset[str] = frozenset({"@room", "@all", "@everyone"})
    room_usernames: frozenset[str] = frozenset()

    def is_everyone(self, token: str) -> bool:
        return token.lower() in self.everyone_keywords

    def is_room(self, username: str) -> bool:
        return username.lstrip("@").lower() in self.room_usernames
