"""In-memory plugin registry with snapshot refresh and search.

The registry is a projection of the filesystem: ``refresh()`` rebuilds it
from the cache store, the skill discoverer, and the link manager, and swaps
the result in as one immutable snapshot. Readers holding the previous
snapshot keep a consistent view.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import Generic, TypeVar

from silk.plugins.config import DEFAULT_MANIFEST_NAME, Plugin, RepoRef, Skill
from silk.plugins.discovery import discover
from silk.plugins.errors import DuplicateSkillError
from silk.plugins.links import LinkManager
from silk.plugins.store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of all installed plugins and their skills.

    Attributes:
        plugins: Plugins sorted by ``RepoRef``.
    """

    plugins: tuple[Plugin, ...] = ()
    _by_ref: dict[RepoRef, Plugin] = field(default_factory=dict, repr=False, compare=False)
    _by_name: dict[str, Skill] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(cls, plugins: Iterable[Plugin], *, strict: bool = True) -> RegistrySnapshot:
        """Index ``plugins`` into a snapshot.

        Plugins are indexed in the order given and stored sorted by ref.
        With ``strict=False``, a skill whose qualified name is already taken
        by an earlier plugin is logged and left out, and its plugin is kept
        with the remaining skills. Qualified names leave out the host, so two
        hosts serving the same ``owner/repo`` can clash.

        Raises:
            DuplicateSkillError: If two skills share a qualified name (in
                non-strict mode, only when both belong to one plugin).
        """
        by_name: dict[str, Skill] = {}
        indexed: list[Plugin] = []
        for plugin in plugins:
            kept: list[Skill] = []
            for skill in plugin.skills:
                existing = by_name.get(skill.qualified_name)
                if existing is None:
                    by_name[skill.qualified_name] = skill
                    kept.append(skill)
                elif strict or existing.plugin_ref == skill.plugin_ref:
                    raise DuplicateSkillError(
                        skill.qualified_name,
                        [existing.source_dir, skill.source_dir],
                    )
                else:
                    logger.warning(
                        "Skipping skill '%s' of %s: name already provided by %s",
                        skill.qualified_name,
                        skill.plugin_ref,
                        existing.plugin_ref,
                    )
            if len(kept) != len(plugin.skills):
                plugin = replace(plugin, skills=tuple(kept))
            indexed.append(plugin)

        ordered = tuple(sorted(indexed, key=lambda plugin: plugin.ref))
        by_ref = {plugin.ref: plugin for plugin in ordered}
        return cls(plugins=ordered, _by_ref=by_ref, _by_name=by_name)

    @property
    def skills(self) -> tuple[Skill, ...]:
        """All skills, flattened in plugin order then skill order."""
        return tuple(skill for plugin in self.plugins for skill in plugin.skills)

    def get(self, ref: RepoRef) -> Plugin | None:
        """Return the plugin for ``ref`` if installed."""
        return self._by_ref.get(ref)

    def find_skill(self, qualified_name: str) -> Skill | None:
        """Return the skill with ``qualified_name`` if present."""
        return self._by_name.get(qualified_name)

    def conflicts(self, plugin: Plugin) -> list[tuple[Skill, Skill]]:
        """Pair each skill of ``plugin`` with another plugin's skill of the same name."""
        pairs: list[tuple[Skill, Skill]] = []
        for skill in plugin.skills:
            existing = self._by_name.get(skill.qualified_name)
            if existing is not None and existing.plugin_ref != plugin.ref:
                pairs.append((skill, existing))
        return pairs


class FilterView(Generic[T]):
    """Lazy, restartable filtered view over a snapshot sequence.

    Each iteration re-applies the predicate to the captured items, so the
    view can be iterated any number of times and always yields items in the
    underlying order.
    """

    def __init__(self, items: tuple[T, ...], predicate: Callable[[T], bool]) -> None:
        self._items = items
        self._predicate = predicate

    def __iter__(self) -> Iterator[T]:
        return (item for item in self._items if self._predicate(item))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def to_list(self) -> list[T]:
        """Materialize the view."""
        return list(self)


def _plugin_matches(plugin: Plugin, needle: str) -> bool:
    return needle in str(plugin.ref).lower()


def _skill_matches(skill: Skill, needle: str) -> bool:
    return needle in str(skill.plugin_ref).lower() or needle in skill.qualified_name.lower()


class PluginRegistry:
    """Authoritative, queryable index of installed plugins and skills.

    Args:
        store: Cache store used to enumerate installed plugins.
        links: Link manager used to compute activation state.
        manifest_name: Filename that marks a skill unit.

    Example::

        registry = PluginRegistry(store, links)
        registry.refresh()
        for skill in registry.filter("review"):
            print(skill.qualified_name, skill.is_linked)
    """

    def __init__(
        self,
        store: CacheStore,
        links: LinkManager,
        *,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
    ) -> None:
        self._store = store
        self._links = links
        self._manifest_name = manifest_name
        self._snapshot = RegistrySnapshot()

    @property
    def snapshot(self) -> RegistrySnapshot:
        """The current snapshot."""
        return self._snapshot

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def scan(self, plugin: Plugin) -> Plugin:
        """Return ``plugin`` with its skills discovered and link state computed."""
        skills = discover(plugin, manifest_name=self._manifest_name, links=self._links)
        return replace(plugin, skills=tuple(skills))

    def refresh(self) -> RegistrySnapshot:
        """Rebuild the whole snapshot from the filesystem.

        On error the previous snapshot stays in place and the error
        propagates. Clashing qualified names across plugins are logged and
        the later plugin's skill is left out.

        Returns:
            The new snapshot.
        """
        plugins = [self.scan(plugin) for plugin in self._store.scan_all()]
        self._snapshot = RegistrySnapshot.build(plugins, strict=False)
        logger.debug(
            "Registry refreshed: %d plugin(s), %d skill(s)",
            len(self._snapshot.plugins),
            len(self._snapshot.skills),
        )
        return self._snapshot

    def refresh_plugin(self, ref: RepoRef) -> RegistrySnapshot:
        """Rebuild the snapshot entry for a single plugin.

        The plugin is re-scanned if its cache directory exists and dropped
        otherwise; every other plugin is carried over unchanged. Plugins
        already in the snapshot keep their names when the re-scanned one
        clashes with them.

        Returns:
            The new snapshot.
        """
        others = [plugin for plugin in self._snapshot.plugins if plugin.ref != ref]
        if self._store.is_installed(ref):
            others.append(self.scan(Plugin(ref=ref, cache_path=self._store.path_for(ref))))
        self._snapshot = RegistrySnapshot.build(others, strict=False)
        return self._snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def plugins(self) -> tuple[Plugin, ...]:
        """All installed plugins in deterministic order."""
        return self._snapshot.plugins

    def get(self, ref: RepoRef) -> Plugin | None:
        """Return the installed plugin for ``ref``, if any."""
        return self._snapshot.get(ref)

    def skills(self, plugin: Plugin | RepoRef | None = None) -> tuple[Skill, ...]:
        """Return the skills of one plugin, or of all plugins."""
        if plugin is None:
            return self._snapshot.skills
        ref = plugin.ref if isinstance(plugin, Plugin) else plugin
        current = self._snapshot.get(ref)
        return current.skills if current is not None else ()

    def find_skill(self, qualified_name: str) -> Skill | None:
        """Return the skill with ``qualified_name``, if any."""
        return self._snapshot.find_skill(qualified_name)

    def filter(self, query: str, plugin: Plugin | RepoRef | None = None) -> FilterView[Skill]:
        """Search skills by plugin identity or qualified name.

        Args:
            query: Case-insensitive substring; empty matches everything.
            plugin: Restrict the search to one plugin's skills.

        Returns:
            A lazy view preserving the registry order.
        """
        needle = query.lower()
        return FilterView(self.skills(plugin), lambda skill: _skill_matches(skill, needle))

    def filter_plugins(self, query: str) -> FilterView[Plugin]:
        """Search plugins by ``host/owner/repo`` identity."""
        needle = query.lower()
        return FilterView(self._snapshot.plugins, lambda plugin: _plugin_matches(plugin, needle))

    def __len__(self) -> int:
        return len(self._snapshot.plugins)

    def __repr__(self) -> str:
        refs = [str(plugin.ref) for plugin in self._snapshot.plugins]
        return f"PluginRegistry(plugins={refs})"
