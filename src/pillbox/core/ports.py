"""Ports (interfaces) used by the core resolver.

Ports define the minimal contracts for the profile directory and message
formatters so the core can be reused with different chat backends.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from pillbox.core.models import MessageBody, ProfileSnapshot


class ProfileDirectoryPort(Protocol):
    """Read side of a live user-id -> display-name store.

    ``version`` increases whenever any stored name changes. Subscribers are
    called after each increase and get back a function that unsubscribes.
    """

    @property
    def version(self) -> int:
        ...

    def snapshot(self) -> ProfileSnapshot:
        ...

    def get_display_name(self, identifier: str) -> Optional[str]:
        ...

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        ...


class FormatterPort(Protocol):
    """Turns raw message markup into a body with pre-parsed mention markers."""

    def build(self, raw: str) -> MessageBody:
        ...
