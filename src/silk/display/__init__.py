"""Terminal display for plugins, skills, and the status line."""

from silk.display.rich_renderer import LINKED_MARKER, UNLINKED_MARKER, RichRenderer

__all__ = [
    "LINKED_MARKER",
    "UNLINKED_MARKER",
    "RichRenderer",
]
