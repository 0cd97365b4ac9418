"""Core domain models.

These types are shared across the core and adapters to avoid tight coupling
to any integration-specific message or entity classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional


class MentionKind(Enum):
    """Closed set of mention targets."""

    USER = "user"
    ROOM = "room"
    EVERYONE = "everyone"


@dataclass
class MentionMarker:
    """A mention embedded in a text run.

    ``start``/``end`` index into the owning run's source text. Only
    ``current_label`` changes after the formatter creates the marker.
    """

    kind: MentionKind
    identifier: str
    current_label: str
    start: int
    end: int


@dataclass(frozen=True)
class Segment:
    """A slice of a run's display text."""

    start: int
    text: str
    marker: Optional[MentionMarker] = None
    linked: bool = False

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def is_plain(self) -> bool:
        return self.marker is None and not self.linked


def _check_ranges(text: str, ranges: list[tuple[int, int]]) -> None:
    previous_end = 0
    for start, end in sorted(ranges):
        if start < 0 or end > len(text):
            raise ValueError(f"Range {start}:{end} outside text of length {len(text)}")
        if start >= end:
            raise ValueError(f"Empty range {start}:{end}")
        if start < previous_end:
            raise ValueError(f"Range {start}:{end} overlaps a previous range")
        previous_end = end


@dataclass
class TextRun:
    """Plain characters plus the mention markers and pre-linked ranges over them.

    A run is owned by exactly one resolution pass at a time. Passes that need
    their own run call :meth:`copy` instead of sharing one.
    """

    text: str
    markers: list[MentionMarker] = field(default_factory=list)
    linked_ranges: tuple[tuple[int, int], ...] = ()

    def __post_init__(self) -> None:
        self.markers.sort(key=lambda marker: marker.start)
        self.linked_ranges = tuple(sorted(self.linked_ranges))
        ranges = [(m.start, m.end) for m in self.markers]
        ranges.extend(self.linked_ranges)
        _check_ranges(self.text, ranges)

    def copy(self) -> TextRun:
        return TextRun(
            text=self.text,
            markers=[replace(marker) for marker in self.markers],
            linked_ranges=self.linked_ranges,
        )

    def _pieces(self) -> Iterator[tuple[str, Optional[MentionMarker], bool]]:
        """Yield (source slice or label, marker, linked) in text order."""

        boundaries: list[tuple[int, int, Optional[MentionMarker]]] = [
            (m.start, m.end, m) for m in self.markers
        ]
        boundaries.extend((start, end, None) for start, end in self.linked_ranges)
        boundaries.sort(key=lambda item: item[0])

        position = 0
        for start, end, marker in boundaries:
            if start > position:
                yield self.text[position:start], None, False
            if marker is not None:
                yield marker.current_label, marker, False
            else:
                yield self.text[start:end], None, True
            position = end
        if position < len(self.text):
            yield self.text[position:], None, False

    def segments(self) -> list[Segment]:
        """Return the run as segments positioned in display coordinates."""

        result: list[Segment] = []
        offset = 0
        for piece, marker, linked in self._pieces():
            if not piece:
                continue
            result.append(Segment(start=offset, text=piece, marker=marker, linked=linked))
            offset += len(piece)
        return result

    def display_text(self) -> str:
        return "".join(piece for piece, _, _ in self._pieces())


@dataclass(frozen=True)
class ProfileSnapshot:
    """Immutable view of a profile directory at one version."""

    version: int
    names: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.names, MappingProxyType):
            object.__setattr__(self, "names", MappingProxyType(dict(self.names)))

    def get_display_name(self, identifier: object) -> Optional[str]:
        """Return the stored name, or None for unknown or unusable entries."""

        if not isinstance(identifier, str) or not identifier.strip():
            return None
        name = self.names.get(identifier)
        if not name or not name.strip():
            return None
        return name


@dataclass(frozen=True, eq=False)
class MessageBody:
    """What a formatter hands to the core for one message.

    ``run`` is a template: the core never resolves it directly. Bodies compare
    by identity, which is what the render cache keys on.
    """

    body: str
    run: TextRun
    formatted_body: Optional[str] = None


def link_href(url_text: str) -> str:
    """Turn link text as written into a target: bare domains get https, addresses get mailto."""

    if "://" in url_text or url_text.startswith("mailto:"):
        return url_text
    if "@" in url_text and "/" not in url_text:
        return f"mailto:{url_text}"
    return f"https://{url_text}"


@dataclass(frozen=True)
class LinkCandidate:
    """A detected link, with offsets into the scanned segment.

    ``enclosed`` is set when the link starts inside a parenthetical that was
    still open at that point of the segment.
    """

    start: int
    end: int
    url_text: str
    enclosed: bool = False

    @property
    def href(self) -> str:
        return link_href(self.url_text)

    def shifted(self, offset: int) -> LinkCandidate:
        return replace(self, start=self.start + offset, end=self.end + offset)
