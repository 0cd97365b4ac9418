"""Lightweight mention markup formatter.

Turns ``@[user-id]`` and ``#[room-id]`` tokens plus everyone keywords such as
``@room`` into mention markers. Used by the CLI and anywhere bodies arrive as
plain strings rather than Telegram entities. Unterminated or empty tokens
pass through as plain text with brackets intact.
"""

from __future__ import annotations

from typing import Optional

from pillbox.core.config import MentionConfig
from pillbox.core.models import MentionKind, MentionMarker, MessageBody, TextRun

_TOKEN_PREFIXES = {"@": MentionKind.USER, "#": MentionKind.ROOM}


def _is_identifier(value: str) -> bool:
    return bool(value) and "[" not in value and not any(ch.isspace() for ch in value)


class MarkupFormatter:
    """FormatterPort implementation for bracket mention markup."""

    def __init__(self, mention_config: Optional[MentionConfig] = None) -> None:
        self._mentions = mention_config or MentionConfig()

    def _everyone_at(self, raw: str, i: int) -> Optional[str]:
        if i > 0 and not raw[i - 1].isspace():
            return None
        for keyword in sorted(self._mentions.everyone_keywords, key=len, reverse=True):
            end = i + len(keyword)
            if raw[i:end].lower() != keyword:
                continue
            if end < len(raw) and (raw[end].isalnum() or raw[end] == "_"):
                continue
            return raw[i:end]
        return None

    def build(self, raw: str) -> MessageBody:
        out: list[str] = []
        markers: list[MentionMarker] = []
        length = 0
        i = 0
        while i < len(raw):
            ch = raw[i]
            kind = _TOKEN_PREFIXES.get(ch)
            if kind is not None and raw.startswith("[", i + 1):
                close = raw.find("]", i + 2)
                identifier = raw[i + 2 : close] if close != -1 else ""
                if _is_identifier(identifier):
                    label = identifier if kind is MentionKind.USER else f"#{identifier}"
                    markers.append(
                        MentionMarker(
                            kind=kind,
                            identifier=identifier,
                            current_label=label,
                            start=length,
                            end=length + len(label),
                        )
                    )
                    out.append(label)
                    length += len(label)
                    i = close + 1
                    continue

            if ch == "@":
                keyword = self._everyone_at(raw, i)
                if keyword is not None:
                    markers.append(
                        MentionMarker(
                            kind=MentionKind.EVERYONE,
                            identifier=keyword,
                            current_label=keyword,
                            start=length,
                            end=length + len(keyword),
                        )
                    )
                    out.append(keyword)
                    length += len(keyword)
                    i += len(keyword)
                    continue

            out.append(ch)
            length += 1
            i += 1

        text = "".join(out)
        return MessageBody(
            body=raw,
            run=TextRun(text=text, markers=markers),
            formatted_body=text if markers else None,
        )
