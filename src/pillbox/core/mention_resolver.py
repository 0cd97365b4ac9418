"""Mention label resolution (core domain)."""

from __future__ import annotations

from typing import assert_never

from pillbox.core.models import MentionKind, MentionMarker, ProfileSnapshot, TextRun


def _label_for(marker: MentionMarker, snapshot: ProfileSnapshot) -> str:
    kind = marker.kind
    if kind is MentionKind.USER:
        name = snapshot.get_display_name(marker.identifier)
        if name:
            return name
        identifier = marker.identifier
        if isinstance(identifier, str) and identifier.strip():
            return identifier
        return marker.current_label
    if kind is MentionKind.ROOM:
        # Room names are not resolved yet.
        return marker.current_label
    if kind is MentionKind.EVERYONE:
        return marker.current_label
    assert_never(kind)


def resolve(run: TextRun, snapshot: ProfileSnapshot) -> bool:
    """Rewrite marker labels in ``run`` from ``snapshot``.

    Returns True when at least one label changed. Unknown user identifiers
    fall back to the identifier itself. Non-string or blank identifiers keep
    the current label, so this never raises and never leaves a blank label.
    """

    changed = False
    for marker in run.markers:
        label = _label_for(marker, snapshot)
        if label != marker.current_label:
            marker.current_label = label
            changed = True
    return changed
