"""Skill activation through symbolic links.

A skill is active when the shared activation directory holds a symlink
named after its qualified name that points at the skill's source
directory. The filesystem is the only record of activation: nothing here
caches link state.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path

from silk.plugins.config import Skill
from silk.plugins.errors import ForeignLinkError, NameCollisionError

logger = logging.getLogger(__name__)


def _link_target(link: Path) -> Path:
    """Return the absolute, normalized target of the symlink ``link``."""
    raw = Path(os.readlink(link))
    if not raw.is_absolute():
        raw = link.parent / raw
    return Path(os.path.normpath(raw))


def _is_within(path: Path, root: Path) -> bool:
    """Return whether ``path`` is ``root`` or lies below it."""
    return path == root or root in path.parents


def _same_path(a: Path, b: Path) -> bool:
    """Compare two paths lexically first, then after resolving symlinks."""
    if Path(os.path.normpath(a)) == Path(os.path.normpath(b)):
        return True
    return a.resolve() == b.resolve()


class LinkManager:
    """Maintain activation links for skills in one activation directory.

    Link targets are always written as absolute paths, so a relative cache
    root still produces links that resolve from the activation directory.

    Args:
        activation_dir: Shared directory holding one symlink per linked skill.
    """

    def __init__(self, activation_dir: Path) -> None:
        self.activation_dir = Path(activation_dir).expanduser().absolute()

    def link_path(self, skill: Skill) -> Path:
        """Return where the activation link for ``skill`` lives."""
        return self.activation_dir / skill.qualified_name

    def points_at(self, link: Path, target: Path) -> bool:
        """Return whether ``link`` is a symlink whose target is ``target``."""
        if not link.is_symlink():
            return False
        return _same_path(_link_target(link), Path(target).absolute())

    def is_linked(self, skill: Skill) -> bool:
        """Check the activation directory for a link to ``skill``.

        A broken link, a link to another directory, or a regular file with
        the same name all count as not linked.
        """
        return self.points_at(self.link_path(skill), skill.source_dir)

    def link(self, skill: Skill) -> None:
        """Create the activation link for ``skill``.

        Idempotent: a link that already points at the skill is left as is.

        Raises:
            NameCollisionError: If an entry with the link name exists and is
                not a link to this skill.
        """
        path = self.link_path(skill)
        if os.path.lexists(path):
            if self.points_at(path, skill.source_dir):
                logger.debug("Skill '%s' already linked", skill.qualified_name)
                return
            raise NameCollisionError(skill.qualified_name, path)

        self.activation_dir.mkdir(parents=True, exist_ok=True)
        try:
            path.symlink_to(skill.source_dir.absolute(), target_is_directory=True)
        except FileExistsError:
            # Created concurrently; accept it only if it is ours.
            if self.points_at(path, skill.source_dir):
                return
            raise NameCollisionError(skill.qualified_name, path) from None
        logger.info("Linked skill '%s' -> %s", skill.qualified_name, skill.source_dir)

    def unlink(self, skill: Skill) -> None:
        """Remove the activation link for ``skill`` if it is ours.

        A missing link is not an error.

        Raises:
            ForeignLinkError: If the entry exists but is not a link to this
                skill's source directory.
        """
        path = self.link_path(skill)
        if not os.path.lexists(path):
            logger.debug("Skill '%s' is not linked, nothing to remove", skill.qualified_name)
            return

        if not self.points_at(path, skill.source_dir):
            target = str(_link_target(path)) if path.is_symlink() else None
            raise ForeignLinkError(skill.qualified_name, path, target)

        try:
            path.unlink()
        except FileNotFoundError:
            return
        logger.info("Unlinked skill '%s'", skill.qualified_name)

    def toggle(self, skill: Skill) -> Skill:
        """Flip the activation state of ``skill``.

        Returns:
            A copy of ``skill`` with ``is_linked`` recomputed from disk.
        """
        if self.is_linked(skill):
            self.unlink(skill)
        else:
            self.link(skill)
        return replace(skill, is_linked=self.is_linked(skill))

    def unlink_under(self, root: Path) -> list[Path]:
        """Remove every activation link whose target lies inside ``root``.

        Used before deleting a plugin so no dangling link survives, including
        links for skills that have since been renamed or moved.

        Returns:
            The removed link paths.
        """
        if not self.activation_dir.is_dir():
            return []

        root = Path(os.path.normpath(Path(root).absolute()))
        resolved_root = root.resolve()
        removed: list[Path] = []
        for entry in sorted(self.activation_dir.iterdir()):
            if not entry.is_symlink():
                continue
            target = _link_target(entry)
            if _is_within(target, root) or _is_within(target.resolve(), resolved_root):
                entry.unlink()
                removed.append(entry)
                logger.info("Removed activation link %s -> %s", entry.name, target)
        return removed

    def reconcile(self, before: Iterable[Skill], after: Iterable[Skill]) -> None:
        """Carry activation links across a plugin update.

        For every skill whose link in this directory still points at its old
        source: when the skill no longer exists the link is removed; when it
        moved to a new source directory the link is re-pointed. Links that
        point anywhere else belong to someone else and are left untouched.
        The ``is_linked`` flag of ``before`` is not consulted, so the same
        skills can be reconciled against every activation directory.

        Args:
            before: Skills of the plugin before the update.
            after: Skills of the plugin rediscovered after the update.
        """
        current = {skill.qualified_name: skill for skill in after}
        for old in before:
            path = self.link_path(old)
            if not self.points_at(path, old.source_dir):
                continue

            new = current.get(old.qualified_name)
            if new is None:
                path.unlink()
                logger.info("Skill '%s' was removed upstream; unlinked", old.qualified_name)
            elif not _same_path(new.source_dir, old.source_dir):
                path.unlink()
                self.link(new)
                logger.info(
                    "Skill '%s' moved to %s; relinked", old.qualified_name, new.source_dir
                )

    def linked_names(self) -> list[str]:
        """List the names of all symlinks in the activation directory."""
        if not self.activation_dir.is_dir():
            return []
        return sorted(entry.name for entry in self.activation_dir.iterdir() if entry.is_symlink())
