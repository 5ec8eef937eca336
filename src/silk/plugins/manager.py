"""Top-level PluginManager facade for the plugin engine.

Composes the reference resolver, cache store, skill discoverer, link
manager, and registry behind the API consumed by the interactive layer.
Every mutating call goes through the cache store or link manager and ends
with a registry refresh of the affected plugin.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from silk.plugins.config import DEFAULT_TARGET, Plugin, PluginConfig, RepoRef, Skill
from silk.plugins.errors import (
    AlreadyExistsError,
    NotFoundError,
    OperationInProgressError,
    PluginError,
    QualifiedNameConflictError,
    UnknownTargetError,
)
from silk.plugins.git import GitClient, SubprocessGitClient
from silk.plugins.links import LinkManager
from silk.plugins.registry import FilterView, PluginRegistry, RegistrySnapshot
from silk.plugins.source import resolve
from silk.plugins.store import CacheStore
from silk.plugins.tasks import CancelToken, OperationHandle, OperationTracker

logger = logging.getLogger(__name__)


class PluginManager:
    """Facade for the plugin engine.

    Example::

        manager = PluginManager(PluginConfig(cache_root=..., activation_dir=...))
        manager.refresh()
        plugin = await manager.install("anthropics/skills")
        skill = manager.toggle_link(plugin.skills[0])

    Args:
        config: Engine configuration. Uses defaults if ``None``.
        git: Git transport. Defaults to ``SubprocessGitClient``.
    """

    def __init__(
        self,
        config: PluginConfig | None = None,
        *,
        git: GitClient | None = None,
    ) -> None:
        self._config = config or PluginConfig()
        self._targets = {
            name: LinkManager(path) for name, path in self._config.targets().items()
        }
        self._links = self._targets[DEFAULT_TARGET]
        self._git = git or SubprocessGitClient(timeout=self._config.git_timeout)
        self._store = CacheStore(
            self._config.cache_root,
            self._git,
            tuple(self._targets.values()),
        )
        self._registry = PluginRegistry(
            self._store,
            self._links,
            manifest_name=self._config.manifest_name,
        )
        self._tracker = OperationTracker()

    @property
    def config(self) -> PluginConfig:
        """Get the engine configuration."""
        return self._config

    @property
    def registry(self) -> PluginRegistry:
        """Get the registry (for advanced use)."""
        return self._registry

    @property
    def store(self) -> CacheStore:
        """Get the cache store (for advanced use)."""
        return self._store

    @property
    def links(self) -> LinkManager:
        """Get the link manager of the default target (for advanced use)."""
        return self._links

    @property
    def targets(self) -> dict[str, LinkManager]:
        """Get the link manager of every activation target, default first."""
        return dict(self._targets)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def refresh(self) -> RegistrySnapshot:
        """Rebuild the registry from the filesystem."""
        try:
            return self._registry.refresh()
        except (OSError, PluginError):
            logger.exception("Registry refresh failed; keeping previous snapshot")
            raise

    def resolve(self, reference: str) -> RepoRef:
        """Resolve a typed reference against the configured default host."""
        return resolve(reference, default_host=self._config.default_host)

    def list_plugins(self) -> tuple[Plugin, ...]:
        """All installed plugins in deterministic order."""
        return self._registry.plugins()

    def list_skills(self, plugin: Plugin | RepoRef | None = None) -> tuple[Skill, ...]:
        """Skills of ``plugin``, or of every plugin when ``None``."""
        return self._registry.skills(plugin)

    def filter(self, query: str, plugin: Plugin | RepoRef | None = None) -> FilterView[Skill]:
        """Search skills by plugin identity or qualified name."""
        return self._registry.filter(query, plugin)

    def filter_plugins(self, query: str) -> FilterView[Plugin]:
        """Search plugins by identity."""
        return self._registry.filter_plugins(query)

    # ------------------------------------------------------------------
    # Install / update
    # ------------------------------------------------------------------

    async def install(
        self,
        reference: str | RepoRef,
        *,
        cancel: CancelToken | None = None,
    ) -> Plugin:
        """Clone a plugin and index its skills.

        Args:
            reference: Typed repository reference or resolved ``RepoRef``.
            cancel: Optional token used to abandon the clone.

        Returns:
            The installed plugin as it appears in the refreshed registry.

        Raises:
            InvalidReferenceError: If ``reference`` cannot be parsed.
            OperationInProgressError: If the plugin is already being fetched.
            AlreadyExistsError: If the plugin is already installed.
            FetchFailedError: If the clone fails or is cancelled.
            QualifiedNameConflictError: If a skill of the clone has a qualified
                name another plugin already provides; the clone is removed.
        """
        ref = reference if isinstance(reference, RepoRef) else self.resolve(reference)
        with self._tracker.begin(ref, "install", cancel) as token:
            return await self._install(ref, token)

    async def update(
        self,
        plugin: Plugin | RepoRef,
        *,
        cancel: CancelToken | None = None,
    ) -> Plugin:
        """Fast-forward a plugin and carry its activation links across.

        Skills that disappeared upstream are unlinked and skills that moved
        are relinked. A failed update changes nothing.

        Returns:
            The updated plugin as it appears in the refreshed registry.

        Raises:
            OperationInProgressError: If the plugin is already being fetched.
            NotFoundError: If the plugin is not installed.
            FetchFailedError: If the pull fails or is cancelled.
        """
        ref = plugin.ref if isinstance(plugin, Plugin) else plugin
        with self._tracker.begin(ref, "update", cancel) as token:
            return await self._update(ref, token)

    def start_install(self, reference: str | RepoRef) -> OperationHandle[Plugin]:
        """Start an install as a background task.

        Validation errors are raised immediately so the interactive layer
        can re-prompt; fetch errors surface from ``handle.result()``.

        Raises:
            InvalidReferenceError: If ``reference`` cannot be parsed.
            OperationInProgressError: If the plugin is already being fetched.
            AlreadyExistsError: If the plugin is already installed.
        """
        ref = reference if isinstance(reference, RepoRef) else self.resolve(reference)
        if self._tracker.is_busy(ref):
            raise OperationInProgressError(ref, self._tracker.active()[ref])
        if self._store.is_installed(ref):
            raise AlreadyExistsError(ref, self._store.path_for(ref))
        return self._spawn(ref, "install", self._install)

    def start_update(self, plugin: Plugin | RepoRef) -> OperationHandle[Plugin]:
        """Start an update as a background task.

        Raises:
            OperationInProgressError: If the plugin is already being fetched.
        """
        ref = plugin.ref if isinstance(plugin, Plugin) else plugin
        return self._spawn(ref, "update", self._update)

    def cancel(self, ref: RepoRef) -> bool:
        """Abandon the in-flight clone or update of ``ref``.

        Returns:
            ``True`` if an operation was in flight.
        """
        return self._tracker.cancel(ref)

    def in_flight(self) -> dict[RepoRef, str]:
        """In-flight network operations keyed by repository."""
        return self._tracker.active()

    def _spawn(
        self,
        ref: RepoRef,
        operation: str,
        runner: Callable[[RepoRef, CancelToken], Awaitable[Plugin]],
    ) -> OperationHandle[Plugin]:
        """Claim ``ref`` and run ``runner`` as a task that releases it on completion."""
        handle: OperationHandle[Plugin] = OperationHandle(ref=ref, operation=operation)
        self._tracker.claim(ref, operation, handle.token)
        task = asyncio.create_task(runner(ref, handle.token))
        task.add_done_callback(lambda _task: self._tracker.release(ref))
        handle._task = task
        return handle

    async def _install(self, ref: RepoRef, token: CancelToken) -> Plugin:
        try:
            cloned = await self._store.clone(ref, cancel=token)
        except PluginError as exc:
            logger.warning("Install of %s failed: %s", ref, exc)
            raise

        conflicts = self._registry.snapshot.conflicts(self._registry.scan(cloned))
        if conflicts:
            skill, existing = conflicts[0]
            self._store.discard(cloned)
            error = QualifiedNameConflictError(ref, skill.qualified_name, existing.plugin_ref)
            logger.warning("Install of %s failed: %s", ref, error)
            raise error

        self._registry.refresh_plugin(ref)
        return self._require(ref)

    async def _update(self, ref: RepoRef, token: CancelToken) -> Plugin:
        path = self._store.path_for(ref)
        if not path.is_dir():
            raise NotFoundError(ref, path)

        before = self._registry.scan(Plugin(ref=ref, cache_path=path))
        try:
            await self._store.update(before, cancel=token)
        except PluginError as exc:
            logger.warning("Update of %s failed: %s", ref, exc)
            raise

        after = self._registry.scan(before)
        for links in self._targets.values():
            links.reconcile(before.skills, after.skills)
        self._registry.refresh_plugin(ref)
        return self._require(ref)

    # ------------------------------------------------------------------
    # Delete / activation
    # ------------------------------------------------------------------

    def delete(self, plugin: Plugin | RepoRef) -> None:
        """Unlink a plugin's skills and remove it from the cache.

        Raises:
            OperationInProgressError: If the plugin is being fetched.
            NotFoundError: If the plugin is not installed.
        """
        ref = plugin.ref if isinstance(plugin, Plugin) else plugin
        if self._tracker.is_busy(ref):
            raise OperationInProgressError(ref, self._tracker.active()[ref])

        path = self._store.path_for(ref)
        current = Plugin(ref=ref, cache_path=path)
        if path.is_dir():
            current = self._registry.scan(current)

        try:
            self._store.remove(current)
        except NotFoundError:
            self._registry.refresh_plugin(ref)
            raise
        self._registry.refresh_plugin(ref)

    def toggle_link(self, skill: Skill) -> Skill:
        """Link ``skill`` if it is unlinked, unlink it otherwise.

        Returns:
            The skill as it appears in the refreshed registry.

        Raises:
            NameCollisionError: If linking would overwrite a foreign entry.
            ForeignLinkError: If unlinking would remove a foreign link.
        """
        toggled = self._links.toggle(skill)
        return self._after_link_change(toggled)

    def link(self, skill: Skill) -> Skill:
        """Activate ``skill``."""
        self._links.link(skill)
        return self._after_link_change(skill)

    def unlink(self, skill: Skill) -> Skill:
        """Deactivate ``skill``."""
        self._links.unlink(skill)
        return self._after_link_change(skill)

    # ------------------------------------------------------------------
    # Link targets
    # ------------------------------------------------------------------

    def link_targets(self) -> list[str]:
        """Names of the configured activation targets, default first."""
        return list(self._targets)

    def is_linked_to(self, skill: Skill, target: str) -> bool:
        """Check whether ``skill`` is linked in the activation target ``target``."""
        return self._target(target).is_linked(skill)

    def linked_targets(self, skill: Skill) -> list[str]:
        """Names of the targets that currently link ``skill``."""
        return [name for name, links in self._targets.items() if links.is_linked(skill)]

    def toggle_link_target(self, skill: Skill, target: str) -> Skill:
        """Link or unlink ``skill`` in one activation target.

        Raises:
            UnknownTargetError: If ``target`` is not configured.
            NameCollisionError: If linking would overwrite a foreign entry.
            ForeignLinkError: If unlinking would remove a foreign link.
        """
        self._target(target).toggle(skill)
        return self._after_link_change(skill)

    def link_all(self, skill: Skill) -> Skill:
        """Link ``skill`` in every activation target that does not link it yet."""
        return self._for_each_target(skill, lambda links: links.link(skill))

    def unlink_all(self, skill: Skill) -> Skill:
        """Unlink ``skill`` from every activation target."""
        return self._for_each_target(skill, lambda links: links.unlink(skill))

    def toggle_all(self, skill: Skill) -> Skill:
        """Unlink ``skill`` everywhere if every target links it, else link it everywhere.

        The first failing target stops the operation; targets already
        handled keep their new state and the error propagates.

        Returns:
            The skill as it appears in the refreshed registry.
        """
        if all(links.is_linked(skill) for links in self._targets.values()):
            return self.unlink_all(skill)
        return self.link_all(skill)

    def _for_each_target(self, skill: Skill, action: Callable[[LinkManager], None]) -> Skill:
        for name, links in self._targets.items():
            try:
                action(links)
            except PluginError as exc:
                logger.warning("Link change in target '%s' failed: %s", name, exc)
                self._registry.refresh_plugin(skill.plugin_ref)
                raise
        return self._after_link_change(skill)

    def _target(self, target: str) -> LinkManager:
        links = self._targets.get(target)
        if links is None:
            raise UnknownTargetError(target, list(self._targets))
        return links

    def _after_link_change(self, skill: Skill) -> Skill:
        self._registry.refresh_plugin(skill.plugin_ref)
        current = self._registry.find_skill(skill.qualified_name)
        if current is None:
            return skill
        return current

    def _require(self, ref: RepoRef) -> Plugin:
        plugin = self._registry.get(ref)
        if plugin is None:
            raise NotFoundError(ref, self._store.path_for(ref))
        return plugin
