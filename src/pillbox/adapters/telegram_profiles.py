"""Feed Telegram users into the profile directory.

Directory keys match what the mapper puts on USER markers: the numeric user
id as a string, and ``@username`` in lower case when the user has one.
"""

from __future__ import annotations

import logging
from typing import Iterable

from telethon.tl.types import MessageEntityMentionName
from telethon.utils import get_display_name

from pillbox.adapters.memory_directory import InMemoryProfileDirectory

LOGGER = logging.getLogger(__name__)


def directory_entries(entity) -> list[tuple[str, str]]:
    """Return (identifier, display name) pairs for one Telethon entity."""

    name = get_display_name(entity)
    entity_id = getattr(entity, "id", None)
    if not name or entity_id is None:
        return []
    entries = [(str(entity_id), name)]
    username = getattr(entity, "username", None)
    if username:
        entries.append((f"@{username.lower()}", name))
    return entries


def remember_entities(directory: InMemoryProfileDirectory, entities: Iterable) -> bool:
    """Store every usable entity under one version bump."""

    entries: list[tuple[str, str]] = []
    for entity in entities:
        if entity is None:
            continue
        entries.extend(directory_entries(entity))
    return directory.update_many(entries)


def unknown_mentioned_user_ids(message, directory: InMemoryProfileDirectory) -> set[int]:
    """User ids mentioned by name in ``message`` that the directory lacks."""

    missing: set[int] = set()
    for entity in getattr(message, "entities", None) or []:
        if isinstance(entity, MessageEntityMentionName):
            if directory.get_display_name(str(entity.user_id)) is None:
                missing.add(entity.user_id)
    return missing


class ProfileFetcher:
    """Fetch users the directory does not know yet, once per user id."""

    def __init__(self, client, directory: InMemoryProfileDirectory) -> None:
        self._client = client
        self._directory = directory
        self._attempted: set[int] = set()

    async def fetch_mentioned(self, message) -> bool:
        user_ids = unknown_mentioned_user_ids(message, self._directory) - self._attempted
        if not user_ids:
            return False
        self._attempted.update(user_ids)

        fetched = []
        for user_id in sorted(user_ids):
            try:
                fetched.append(await self._client.get_entity(user_id))
            except Exception:
                LOGGER.warning("Could not fetch profile for user %s", user_id)
        return remember_entities(self._directory, fetched)
