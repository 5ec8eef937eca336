"""Skill discovery inside a cloned plugin.

Walks a plugin's cache directory for skill units: directories that directly
contain the skill manifest file. Discovery stops descending at a skill unit,
skips version-control metadata directories, and does not follow symlinked
directories.

Naming:
- A skill is named after its directory's basename.
- A manifest at the plugin root makes the whole plugin one skill, named
  after the repository.
- When several skill directories share a basename, each of them is named by
  its relative path with ``/`` replaced by ``-``; a numeric suffix settles any
  remaining clash, in traversal order.
- ``:`` in a name is replaced by ``-``, since it separates the parts of a
  qualified name.

Results are ordered lexicographically by relative path, so listings are
stable across refreshes.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from pathlib import Path

from silk.plugins.config import DEFAULT_MANIFEST_NAME, Plugin, Skill
from silk.plugins.links import LinkManager
from silk.plugins.loader import read_description

logger = logging.getLogger(__name__)

# Version-control metadata directories are never searched.
_EXCLUDED_DIRS = frozenset({".git", ".hg", ".svn"})


def find_skill_dirs(root: Path, manifest_name: str = DEFAULT_MANIFEST_NAME) -> list[Path]:
    """Find skill unit directories below ``root``.

    Args:
        root: Directory to search (a plugin cache path).
        manifest_name: Filename that marks a skill unit.

    Returns:
        Skill directories sorted by their POSIX path relative to ``root``.
    """
    if not root.is_dir():
        logger.debug("Plugin directory does not exist, skipping: %s", root)
        return []

    if (root / manifest_name).is_file():
        return [root]

    found: list[Path] = []
    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            entries = list(directory.iterdir())
        except PermissionError:
            logger.warning("Permission denied scanning directory: %s", directory)
            continue
        except OSError as exc:
            logger.warning("Cannot scan directory %s: %s", directory, exc)
            continue

        for entry in entries:
            if entry.name in _EXCLUDED_DIRS or entry.is_symlink() or not entry.is_dir():
                continue
            if (entry / manifest_name).is_file():
                found.append(entry)
            else:
                pending.append(entry)

    return sorted(found, key=lambda path: path.relative_to(root).as_posix())


def _link_safe(name: str) -> str:
    return name.replace(":", "-")


def assign_names(root: Path, skill_dirs: list[Path]) -> list[tuple[str, Path]]:
    """Give each skill directory a local name unique within the plugin.

    Args:
        root: Plugin cache directory.
        skill_dirs: Skill directories in traversal order.

    Returns:
        ``(name, directory)`` pairs in the same order as ``skill_dirs``.
    """
    basenames = [_link_safe(root.name if path == root else path.name) for path in skill_dirs]
    counts = Counter(basenames)

    used: set[str] = set()
    named: list[tuple[str, Path]] = []
    for base, path in zip(basenames, skill_dirs, strict=True):
        if counts[base] == 1:
            name = base
        else:
            name = _link_safe(path.relative_to(root).as_posix().replace("/", "-"))

        if name in used:
            suffix = 2
            while f"{name}-{suffix}" in used:
                suffix += 1
            name = f"{name}-{suffix}"

        used.add(name)
        named.append((name, path))
    return named


def discover(
    plugin: Plugin,
    *,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
    links: LinkManager | None = None,
) -> list[Skill]:
    """Discover the skills shipped by ``plugin``.

    Args:
        plugin: Plugin whose cache directory is scanned.
        manifest_name: Filename that marks a skill unit.
        links: When given, used to compute each skill's ``is_linked``.

    Returns:
        Skills in deterministic order, with qualified names derived from the
        plugin identity.
    """
    root = plugin.cache_path
    skill_dirs = find_skill_dirs(root, manifest_name)

    skills: list[Skill] = []
    for name, path in assign_names(root, skill_dirs):
        skill = Skill.create(
            plugin.ref,
            name,
            path,
            description=read_description(path / manifest_name),
        )
        if links is not None and links.is_linked(skill):
            skill = replace(skill, is_linked=True)
        skills.append(skill)

    logger.debug("Discovered %d skill(s) in %s", len(skills), plugin.ref)
    return skills
