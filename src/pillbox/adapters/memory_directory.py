"""In-memory profile directory adapter.

Implements the core ProfileDirectoryPort with a plain dict. Writers are the
Telegram watcher and the CLI; the core only ever reads snapshots.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Optional

from pillbox.core.models import ProfileSnapshot

LOGGER = logging.getLogger(__name__)


class InMemoryProfileDirectory:
    """Versioned id -> display name store that satisfies ProfileDirectoryPort."""

    def __init__(self, names: Optional[Mapping[str, str]] = None) -> None:
        self._names: dict[str, str] = dict(names or {})
        self._version = 0
        self._snapshot: Optional[ProfileSnapshot] = None
        self._subscribers: list[Callable[[int], None]] = []

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> ProfileSnapshot:
        if self._snapshot is None or self._snapshot.version != self._version:
            self._snapshot = ProfileSnapshot(version=self._version, names=self._names)
        return self._snapshot

    def get_display_name(self, identifier: str) -> Optional[str]:
        return self.snapshot().get_display_name(identifier)

    def set_display_name(self, identifier: str, name: str) -> bool:
        """Store one name. Returns True when the directory changed."""

        return self.update_many([(identifier, name)])

    def update_many(self, entries: Iterable[tuple[str, str]]) -> bool:
        """Store several names under a single version bump."""

        changed = False
        for identifier, name in entries:
            if not identifier or self._names.get(identifier) == name:
                continue
            self._names[identifier] = name
            changed = True
        if changed:
            self._bump()
        return changed

    def remove(self, identifier: str) -> bool:
        if identifier not in self._names:
            return False
        del self._names[identifier]
        self._bump()
        return True

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """Call ``callback(version)`` after every change until unsubscribed."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _bump(self) -> None:
        self._version += 1
        LOGGER.debug("Profile directory now at version %s (%s names)", self._version, len(self._names))
        for callback in list(self._subscribers):
            try:
                callback(self._version)
            except Exception:
                LOGGER.exception("Profile directory subscriber failed")
