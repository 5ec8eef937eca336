"""On-disk plugin cache.

Every plugin lives at ``<cache_root>/<host>/<owner>/<repo>``. The cache
store owns creating, fetching into, and deleting those directories; the
transfer itself is delegated to a ``GitClient``.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path

from silk.plugins.config import Plugin, RepoRef
from silk.plugins.errors import (
    AlreadyExistsError,
    FetchCancelledError,
    FetchFailedError,
    NotFoundError,
)
from silk.plugins.git import GitClient
from silk.plugins.links import LinkManager
from silk.plugins.tasks import CancelToken

logger = logging.getLogger(__name__)


class CacheStore:
    """Create, update, remove, and enumerate cached plugin clones.

    Args:
        cache_root: Base directory of the three-level cache layout.
        git: Git transport used for clone and pull.
        links: Link manager, or one per activation directory, used to
            deactivate skills before removal.
    """

    def __init__(
        self,
        cache_root: Path,
        git: GitClient,
        links: LinkManager | Sequence[LinkManager],
    ) -> None:
        self.cache_root = Path(cache_root).expanduser().absolute()
        self._git = git
        self._links = (links,) if isinstance(links, LinkManager) else tuple(links)

    def path_for(self, ref: RepoRef) -> Path:
        """Return the canonical cache directory for ``ref``."""
        return self.cache_root / ref.host / ref.owner / ref.repo

    def is_installed(self, ref: RepoRef) -> bool:
        """Return whether a cache directory exists for ``ref``."""
        return self.path_for(ref).is_dir()

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    async def clone(self, ref: RepoRef, *, cancel: CancelToken | None = None) -> Plugin:
        """Clone ``ref`` into its canonical cache directory.

        A failed or abandoned clone removes whatever was created, so a
        half-initialized plugin is never left behind.

        Args:
            ref: Repository to clone.
            cancel: Optional token used to abandon the clone.

        Returns:
            The new plugin, with no skills discovered yet.

        Raises:
            AlreadyExistsError: If the cache directory already exists.
            FetchCancelledError: If ``cancel`` fired during the transfer.
            FetchFailedError: If the git client reports failure.
        """
        path = self.path_for(ref)
        if os.path.lexists(path):
            raise AlreadyExistsError(ref, path)

        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s into %s", ref.remote_url, path)
        try:
            result = await self._git.clone(ref.remote_url, path, cancel=cancel)
        except BaseException:
            self._discard(path)
            raise

        if cancel is not None and cancel.cancelled:
            self._discard(path)
            raise FetchCancelledError(ref)
        if not result.ok:
            self._discard(path)
            raise FetchFailedError(ref, result.detail)

        logger.info("Cloned %s", ref)
        return Plugin(ref=ref, cache_path=path)

    async def update(self, plugin: Plugin, *, cancel: CancelToken | None = None) -> Plugin:
        """Fast-forward ``plugin`` to its remote's current state.

        A failed pull leaves the existing clone exactly as it was.

        Args:
            plugin: Installed plugin to update.
            cancel: Optional token used to abandon the pull.

        Returns:
            The plugin, with skills left for rediscovery.

        Raises:
            NotFoundError: If the plugin's cache directory is missing.
            FetchCancelledError: If ``cancel`` fired during the transfer.
            FetchFailedError: If the git client reports failure.
        """
        path = plugin.cache_path
        if not path.is_dir():
            raise NotFoundError(plugin.ref, path)

        logger.info("Updating %s", plugin.ref)
        result = await self._git.pull(path, cancel=cancel)

        if cancel is not None and cancel.cancelled:
            raise FetchCancelledError(plugin.ref)
        if not result.ok:
            raise FetchFailedError(plugin.ref, result.detail)

        logger.info("Updated %s", plugin.ref)
        return Plugin(ref=plugin.ref, cache_path=path)

    # ------------------------------------------------------------------
    # Local operations
    # ------------------------------------------------------------------

    def remove(self, plugin: Plugin) -> None:
        """Delete ``plugin`` from the cache.

        Every skill linked to this plugin is unlinked first, and any other
        activation link into the plugin directory is purged. This happens in
        every activation directory, so deletion never leaves a dangling
        link. Empty owner and host directories are pruned afterwards.

        Raises:
            NotFoundError: If the plugin's cache directory does not exist.
        """
        path = plugin.cache_path
        if not path.exists():
            raise NotFoundError(plugin.ref, path)

        for links in self._links:
            for skill in plugin.skills:
                if links.is_linked(skill):
                    links.unlink(skill)
            links.unlink_under(path)

        shutil.rmtree(path)
        self._prune_parents(path)
        logger.info("Removed %s", plugin.ref)

    def discard(self, plugin: Plugin) -> None:
        """Roll back a fresh clone that must not be kept.

        Unlike ``remove`` this touches no activation links; a clone that was
        never indexed has none.
        """
        self._discard(plugin.cache_path)
        logger.info("Discarded clone of %s", plugin.ref)

    def scan_all(self) -> list[Plugin]:
        """Enumerate cached plugins.

        Walks exactly ``<cache_root>/<host>/<owner>/<repo>``. Anything that
        does not fit the layout is skipped.

        Returns:
            Plugins sorted by ``(host, owner, repo)``, with no skills
            discovered yet.
        """
        if not self.cache_root.is_dir():
            logger.debug("Cache root does not exist: %s", self.cache_root)
            return []

        plugins: list[Plugin] = []
        for host_dir in _subdirs(self.cache_root):
            for owner_dir in _subdirs(host_dir):
                for repo_dir in _subdirs(owner_dir):
                    try:
                        ref = RepoRef(host=host_dir.name, owner=owner_dir.name, repo=repo_dir.name)
                    except ValueError:
                        logger.debug("Skipping cache entry with invalid layout: %s", repo_dir)
                        continue
                    plugins.append(Plugin(ref=ref, cache_path=repo_dir))

        return sorted(plugins, key=lambda plugin: plugin.ref)

    def _discard(self, path: Path) -> None:
        """Remove a partially created clone and its empty parents."""
        if os.path.lexists(path):
            logger.info("Removing incomplete clone at %s", path)
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        self._prune_parents(path)

    def _prune_parents(self, path: Path) -> None:
        """Remove empty owner and host directories above ``path``."""
        for parent in (path.parent, path.parent.parent):
            if parent == self.cache_root or self.cache_root not in parent.parents:
                return
            try:
                parent.rmdir()
            except OSError:
                # Not empty (or already gone); stop pruning.
                return


def _subdirs(directory: Path) -> list[Path]:
    """Return the real (non-symlink) subdirectories of ``directory``, sorted."""
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        logger.warning("Cannot read cache directory %s: %s", directory, exc)
        return []
    return [entry for entry in entries if entry.is_dir() and not entry.is_symlink()]
