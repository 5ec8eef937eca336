"""Status line notifications for concurrent operations.

Several installs and updates can run at once, each reporting progress and
outcome under its own id (``install:owner/repo``, ``update:owner/repo``...).
``StatusManager`` keeps one entry per id and folds them into a single
status line.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

# Seconds before a non-progress entry expires.
STATUS_DISPLAY_DURATION = 3.0

READY = "Ready"


class StatusKind(str, Enum):
    """Kind of status notification.

    Attributes:
        INFO: General information.
        PROGRESS: Operation in flight; never expires.
        SUCCESS: Operation completed.
        ERROR: Operation failed.
    """

    INFO = "info"
    PROGRESS = "progress"
    SUCCESS = "success"
    ERROR = "error"


# Lower sorts first in the status line.
_PRIORITY = {
    StatusKind.PROGRESS: 0,
    StatusKind.ERROR: 1,
    StatusKind.SUCCESS: 2,
    StatusKind.INFO: 3,
}


@dataclass
class StatusEntry:
    """A single status notification.

    Attributes:
        id: Unique identifier, e.g. ``install:owner/repo``.
        message: Display message.
        kind: Status kind.
        created_at: Clock reading when the entry was added or last updated.
    """

    id: str
    message: str
    kind: StatusKind
    created_at: float


class StatusManager:
    """Keyed status notifications folded into one status line.

    Args:
        clock: Monotonic time source in seconds. Defaults to
            ``time.monotonic``; tests pass a fake.
        ttl: Seconds a non-progress entry stays visible.

    Example::

        status = StatusManager()
        status.add("install:acme/tools", "Installing acme/tools...", StatusKind.PROGRESS)
        status.display()  # "Installing acme/tools..."
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        ttl: float = STATUS_DISPLAY_DURATION,
    ) -> None:
        self._clock = clock
        self._ttl = ttl
        self._entries: list[StatusEntry] = []

    def add(self, id: str, message: str, kind: StatusKind) -> None:
        """Add an entry, or replace the message and kind of an existing one.

        Updating an entry keeps its position and restarts its expiry.
        """
        now = self._clock()
        for entry in self._entries:
            if entry.id == id:
                entry.message = message
                entry.kind = kind
                entry.created_at = now
                return
        self._entries.append(StatusEntry(id=id, message=message, kind=kind, created_at=now))

    def remove(self, id: str) -> None:
        """Remove the entry with ``id``, if any."""
        self._entries = [entry for entry in self._entries if entry.id != id]

    def clear_completed(self) -> None:
        """Remove every entry except those still in progress."""
        self._entries = [e for e in self._entries if e.kind is StatusKind.PROGRESS]

    def clear_expired(self) -> None:
        """Remove non-progress entries older than the display duration."""
        now = self._clock()
        self._entries = [
            entry
            for entry in self._entries
            if entry.kind is StatusKind.PROGRESS or now - entry.created_at < self._ttl
        ]

    def entries(self) -> list[StatusEntry]:
        """Return a copy of the current entries in insertion order."""
        return list(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def has_error(self) -> bool:
        return any(entry.kind is StatusKind.ERROR for entry in self._entries)

    def has_progress(self) -> bool:
        return any(entry.kind is StatusKind.PROGRESS for entry in self._entries)

    def display(self) -> str:
        """Combined status line.

        Messages are ordered Progress, Error, Success, Info (insertion order
        within a kind) and joined with ``" | "``. ``"Ready"`` when empty.
        """
        if not self._entries:
            return READY
        ordered = sorted(self._entries, key=lambda entry: _PRIORITY[entry.kind])
        return " | ".join(entry.message for entry in ordered)

    def display_kind(self) -> StatusKind:
        """Kind of the most relevant entry, used to color the status line.

        The empty ``"Ready"`` state counts as ``SUCCESS``.
        """
        if not self._entries:
            return StatusKind.SUCCESS
        return min((entry.kind for entry in self._entries), key=_PRIORITY.__getitem__)

    def __len__(self) -> int:
        return len(self._entries)
