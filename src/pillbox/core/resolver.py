"""Memoised rich-text resolution.

This module is integration-agnostic. It only relies on the profile directory
port, so any chat backend that can supply a MessageBody can use it.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import logging
from typing import Iterator, Optional

from pillbox.core.config import RenderConfig
from pillbox.core.emoji import is_emoji_only
from pillbox.core.link_scanner import scan
from pillbox.core.mention_resolver import resolve
from pillbox.core.models import LinkCandidate, MessageBody, ProfileSnapshot, Segment, TextRun
from pillbox.core.ports import ProfileDirectoryPort

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedText:
    """What the renderer receives for one body at one directory version."""

    run: TextRun
    changed: bool
    emoji_only: bool
    version: int

    def display_text(self) -> str:
        return self.run.display_text()

    def plain_segments(self) -> list[Segment]:
        return [segment for segment in self.run.segments() if segment.is_plain]

    def links(self) -> Iterator[LinkCandidate]:
        """Yield links from every plain segment, in display coordinates."""

        for segment in self.plain_segments():
            for candidate in scan(segment.text):
                yield candidate.shifted(segment.start)


@dataclass
class _CacheEntry:
    body: MessageBody
    version: int
    resolved: ResolvedText


class RichTextResolver:
    """Resolves message bodies against a profile directory, once per version."""

    scan_links = staticmethod(scan)

    def __init__(self, directory: ProfileDirectoryPort, config: Optional[RenderConfig] = None) -> None:
        self._directory = directory
        self._config = config or RenderConfig()
        self._entries: OrderedDict[int, _CacheEntry] = OrderedDict()

    def render(self, body: MessageBody, snapshot: Optional[ProfileSnapshot] = None) -> ResolvedText:
        """Return the resolved text for ``body`` at ``snapshot`` (latest by default).

        A cached result is returned when neither the body nor the snapshot
        version changed. Otherwise the previous run for this body (or the
        formatter's template on first sight) is copied and resolved, so no
        run is ever shared between two passes.
        """

        if snapshot is None:
            snapshot = self._directory.snapshot()

        # Entries hold a reference to their body, so a cached id is never reused.
        key = id(body)
        entry = self._entries.get(key)
        if entry is not None and entry.version == snapshot.version:
            self._entries.move_to_end(key)
            LOGGER.debug("Render cache hit (version %s)", snapshot.version)
            return entry.resolved

        previous = entry.resolved.run if entry is not None else body.run
        run = previous.copy()
        changed = resolve(run, snapshot)
        if not changed and entry is not None:
            # Nothing moved: keep handing out the same run object.
            run = previous

        if entry is not None:
            emoji_only = entry.resolved.emoji_only
        else:
            emoji_only = is_emoji_only(body.body, body.formatted_body)

        resolved = ResolvedText(
            run=run,
            changed=changed,
            emoji_only=emoji_only,
            version=snapshot.version,
        )
        self._store(key, _CacheEntry(body=body, version=snapshot.version, resolved=resolved))
        LOGGER.debug(
            "Resolved %s mention(s) at version %s (changed=%s)",
            len(run.markers),
            snapshot.version,
            changed,
        )
        return resolved

    def forget(self, body: MessageBody) -> None:
        self._entries.pop(id(body), None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _store(self, key: int, entry: _CacheEntry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > max(self._config.memo_size, 1):
            self._entries.popitem(last=False)
