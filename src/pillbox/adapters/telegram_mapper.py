"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core resolver: message
entities become mention markers or pre-linked ranges on a TextRun.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from telethon.helpers import add_surrogate, del_surrogate
from telethon.tl.custom import Message
from telethon.tl.types import (
    InputMessageEntityMentionName,
    MessageEntityEmail,
    MessageEntityMention,
    MessageEntityMentionName,
    MessageEntityTextUrl,
    MessageEntityUrl,
)

from pillbox.core.config import MentionConfig
from pillbox.core.models import MentionKind, MentionMarker, MessageBody, TextRun

LOGGER = logging.getLogger(__name__)

_LINK_ENTITIES = (MessageEntityUrl, MessageEntityTextUrl, MessageEntityEmail)


def _to_python_range(surrogated: str, offset: int, length: int) -> tuple[int, int]:
    """Convert a UTF-16 (offset, length) pair into str indices."""

    start = len(del_surrogate(surrogated[:offset]))
    end = start + len(del_surrogate(surrogated[offset : offset + length]))
    return start, end


def _mention_name_user_id(entity) -> Optional[int]:
    if isinstance(entity, MessageEntityMentionName):
        return entity.user_id
    if isinstance(entity, InputMessageEntityMentionName):
        return getattr(entity.user_id, "user_id", None)
    return None


def _marker_for(
    entity,
    text: str,
    start: int,
    end: int,
    mention_config: MentionConfig,
) -> Optional[MentionMarker]:
    label = text[start:end]
    user_id = _mention_name_user_id(entity)
    if user_id is not None:
        return MentionMarker(MentionKind.USER, str(user_id), label, start, end)

    if isinstance(entity, MessageEntityMention):
        if mention_config.is_everyone(label):
            return MentionMarker(MentionKind.EVERYONE, label, label, start, end)
        if mention_config.is_room(label):
            return MentionMarker(MentionKind.ROOM, label.lower(), label, start, end)
        return MentionMarker(MentionKind.USER, label.lower(), label, start, end)
    return None


def build_run(text: str, entities: Iterable, mention_config: MentionConfig) -> TextRun:
    """Build a TextRun from raw text and Telegram entities."""

    surrogated = add_surrogate(text)
    markers: list[MentionMarker] = []
    linked: list[tuple[int, int]] = []
    taken_until = 0
    for entity in sorted(entities, key=lambda e: e.offset):
        start, end = _to_python_range(surrogated, entity.offset, entity.length)
        if start >= end:
            continue

        marker = _marker_for(entity, text, start, end, mention_config)
        if marker is None and not isinstance(entity, _LINK_ENTITIES):
            continue
        if start < taken_until:
            LOGGER.debug("Skipping overlapping %s at %s", type(entity).__name__, start)
            continue

        if marker is not None:
            markers.append(marker)
        else:
            linked.append((start, end))
        taken_until = end

    return TextRun(text=text, markers=markers, linked_ranges=tuple(linked))


def build_body(message: Message, mention_config: Optional[MentionConfig] = None) -> MessageBody:
    """Build a core MessageBody from a Telethon Message."""

    mention_config = mention_config or MentionConfig()
    raw_text = message.raw_text or ""
    entities = getattr(message, "entities", None) or []

    formatted = getattr(message, "text", None)
    if formatted == raw_text:
        formatted = None

    return MessageBody(
        body=raw_text,
        run=build_run(raw_text, entities, mention_config),
        formatted_body=formatted,
    )
