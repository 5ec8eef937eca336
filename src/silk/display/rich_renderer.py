"""Rich Console renderer for plugin, skill, and status display.

Builds Rich tables and styled text for the plugin list, a skill list, and
the status line.

Classes:
    RichRenderer: Renderer producing Rich Console output.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from silk.status import StatusKind

if TYPE_CHECKING:
    from silk.plugins.config import Plugin, RepoRef, Skill
    from silk.status import StatusManager

LINKED_MARKER = "●"
UNLINKED_MARKER = "○"

_PROGRESS_LABELS = {"install": "installing", "update": "updating"}

_STATUS_STYLES = {
    StatusKind.PROGRESS: "bold yellow",
    StatusKind.ERROR: "bold red",
    StatusKind.SUCCESS: "green",
    StatusKind.INFO: "cyan",
}


def _progress_label(operation: str | None) -> str:
    if operation is None:
        return ""
    return _PROGRESS_LABELS.get(operation, operation)


class RichRenderer:
    """Rich Console renderer for registry and status data.

    Each render method accepts an optional ``console`` parameter. When
    provided, output uses a recording console of the same width. When
    omitted, a new ``Console(record=True)`` is created internally.

    Example::

        renderer = RichRenderer()
        output = renderer.render_plugins(manager.list_plugins())
    """

    # ------------------------------------------------------------------
    # render_plugins
    # ------------------------------------------------------------------

    def render_plugins(
        self,
        plugins: Iterable[Plugin],
        *,
        in_flight: Mapping[RepoRef, str] | None = None,
        console: Console | None = None,
    ) -> str:
        """Render installed plugins as a table.

        Each row shows ``owner/repo``, the host, and ``linked/total`` skill
        counts. Operations in ``in_flight`` are shown in a status column.

        Args:
            plugins: Plugins in display order.
            in_flight: In-flight operations keyed by repository.
            console: Optional Rich Console instance.

        Returns:
            The rendered string captured from the console.
        """
        console = self._ensure_console(console)
        in_flight = in_flight or {}
        plugins = list(plugins)

        if not plugins and not in_flight:
            console.print(Panel("No plugins installed", title="Plugins", expand=False))
            return console.export_text()

        table = Table(title=f"Plugins ({len(plugins)})")
        table.add_column("Plugin", style="bold cyan")
        table.add_column("Host", style="dim")
        table.add_column("Linked", justify="right")
        table.add_column("Status")

        for plugin in plugins:
            operation = in_flight.get(plugin.ref)
            table.add_row(
                plugin.ref.slug,
                plugin.ref.host,
                f"{plugin.linked_count}/{len(plugin.skills)}",
                _progress_label(operation),
            )

        installed = {plugin.ref for plugin in plugins}
        for ref, operation in sorted(in_flight.items()):
            if ref not in installed:
                table.add_row(ref.slug, ref.host, "-", _progress_label(operation))

        console.print(table)
        return console.export_text()

    # ------------------------------------------------------------------
    # render_skills
    # ------------------------------------------------------------------

    def render_skills(
        self,
        skills: Iterable[Skill],
        *,
        title: str = "Skills",
        console: Console | None = None,
    ) -> str:
        """Render skills as a table with a linked marker per row.

        Args:
            skills: Skills in display order.
            title: Table title, typically the plugin's ``owner/repo``.
            console: Optional Rich Console instance.

        Returns:
            The rendered string captured from the console.
        """
        console = self._ensure_console(console)
        skills = list(skills)

        if not skills:
            console.print(Panel("No skills found", title=title, expand=False))
            return console.export_text()

        table = Table(title=f"{title} ({len(skills)})")
        table.add_column("", width=1)
        table.add_column("Skill", style="bold")
        table.add_column("Description", style="dim")

        for skill in skills:
            marker = (
                Text(LINKED_MARKER, style="green")
                if skill.is_linked
                else Text(UNLINKED_MARKER, style="dim")
            )
            table.add_row(marker, skill.qualified_name, skill.description or "")

        console.print(table)
        return console.export_text()

    # ------------------------------------------------------------------
    # render_status
    # ------------------------------------------------------------------

    def render_status(
        self,
        status: StatusManager,
        *,
        console: Console | None = None,
    ) -> str:
        """Render the status line, colored by its most relevant kind.

        Args:
            status: Status notifications to render.
            console: Optional Rich Console instance.

        Returns:
            The rendered string captured from the console.
        """
        console = self._ensure_console(console)
        console.print(Text(status.display(), style=_STATUS_STYLES[status.display_kind()]))
        return console.export_text()

    @staticmethod
    def _ensure_console(console: Console | None) -> Console:
        """Return a recording console, matching the width of ``console`` if given."""
        if console is not None:
            return Console(record=True, width=console.width)
        return Console(record=True)
