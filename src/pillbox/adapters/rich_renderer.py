"""Render resolved bodies as Rich text.

Styling lives here and in settings; the core only reports which ranges are
mentions or links and whether the body is emoji-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rich.text import Text

from pillbox.core.models import MentionKind, link_href
from pillbox.core.resolver import ResolvedText


@dataclass(frozen=True)
class RenderStyles:
    """Rich style strings for each kind of range."""

    user_mention: str = "bold cyan"
    room_mention: str = "bold magenta"
    everyone_mention: str = "bold yellow"
    link: str = "underline blue"
    emoji_only: str = "bold"

    def for_mention(self, kind: MentionKind) -> str:
        if kind is MentionKind.USER:
            return self.user_mention
        if kind is MentionKind.ROOM:
            return self.room_mention
        return self.everyone_mention


def to_rich_text(resolved: ResolvedText, styles: Optional[RenderStyles] = None) -> Text:
    """Return a Rich Text with mention, link and emoji-only styling applied."""

    styles = styles or RenderStyles()
    text = Text(style=styles.emoji_only if resolved.emoji_only else "")

    for segment in resolved.run.segments():
        if segment.marker is not None:
            text.append(segment.text, style=styles.for_mention(segment.marker.kind))
        elif segment.linked:
            text.append(segment.text, style=f"{styles.link} link {link_href(segment.text)}")
        else:
            text.append(segment.text)

    for link in resolved.links():
        text.stylize(f"{styles.link} link {link.href}", link.start, link.end)
    return text
