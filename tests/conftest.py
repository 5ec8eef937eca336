"""Shared test fixtures and configuration for silk tests."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

import pytest

from silk.plugins.config import PluginConfig
from silk.plugins.git import GitResult
from silk.plugins.links import LinkManager
from silk.plugins.manager import PluginManager
from silk.plugins.store import CacheStore
from silk.plugins.tasks import CancelToken

SKILL_TEMPLATE = """\
---
name: {name}
description: {description}
---

# {name}
"""


def skill_files(*paths: str, manifest: str = "SKILL.md") -> dict[str, str]:
    """Build a repository file mapping with one manifest per skill path.

    ``skill_files("review", "tools/lint")`` yields manifests at
    ``review/SKILL.md`` and ``tools/lint/SKILL.md``.
    """
    files: dict[str, str] = {}
    for path in paths:
        name = path.rstrip("/").rsplit("/", 1)[-1] or "root"
        key = f"{path}/{manifest}" if path else manifest
        files[key] = SKILL_TEMPLATE.format(name=name, description=f"The {name} skill")
    return files


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Write ``files`` (relative path -> content) below ``root``."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def read_tree(root: Path) -> dict[str, bytes]:
    """Snapshot every regular file below ``root`` (relative path -> bytes)."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file() and not path.is_symlink()
    }


class FakeGitClient:
    """In-memory ``GitClient`` that never touches the network.

    Repositories are registered by remote URL with a file mapping. A clone
    writes those files plus an empty ``.git`` directory into the
    destination; a pull replaces the working tree with the registered
    upstream files, if any.

    Attributes:
        calls: ``(operation, target)`` pairs in call order.
        fail_with: When set, every operation fails with this detail after
            creating the destination (so cleanup is exercised).
        hang: When set, operations block until cancelled.
        started: Set once an operation has begun, so tests can cancel it.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail_with: str | None = None
        self.hang = False
        self.started = asyncio.Event()
        self._repos: dict[str, dict[str, str]] = {}
        self._upstream: dict[str, dict[str, str]] = {}
        self._origins: dict[Path, str] = {}

    def add_repo(self, remote_url: str, files: dict[str, str]) -> None:
        """Register the files a clone of ``remote_url`` produces."""
        self._repos[remote_url] = dict(files)

    def push(self, remote_url: str, files: dict[str, str]) -> None:
        """Replace the upstream files the next pull of ``remote_url`` receives."""
        self._upstream[remote_url] = dict(files)

    async def clone(
        self,
        remote_url: str,
        dest: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult:
        self.calls.append(("clone", remote_url))
        dest.mkdir(parents=True)
        (dest / ".git").mkdir()
        self.started.set()

        if self.hang:
            await self._block(cancel)
            return GitResult(ok=False, detail="killed")
        if self.fail_with is not None:
            return GitResult(ok=False, detail=self.fail_with)
        if remote_url not in self._repos:
            return GitResult(ok=False, detail=f"repository '{remote_url}' not found")

        write_tree(dest, self._repos[remote_url])
        self._origins[dest] = remote_url
        return GitResult(ok=True)

    async def pull(
        self,
        repo_path: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult:
        self.calls.append(("pull", str(repo_path)))
        self.started.set()

        if self.hang:
            await self._block(cancel)
            return GitResult(ok=False, detail="killed")
        if self.fail_with is not None:
            return GitResult(ok=False, detail=self.fail_with)

        origin = self._origins.get(repo_path)
        if origin is None or origin not in self._upstream:
            return GitResult(ok=True, detail="Already up to date.")

        for entry in repo_path.iterdir():
            if entry.name == ".git":
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        write_tree(repo_path, self._upstream.pop(origin))
        return GitResult(ok=True)

    @staticmethod
    async def _block(cancel: CancelToken | None) -> None:
        if cancel is not None:
            await cancel.wait()
        else:
            await asyncio.Event().wait()


@pytest.fixture
def fake_git() -> FakeGitClient:
    """Provide a FakeGitClient with no repositories registered."""
    return FakeGitClient()


@pytest.fixture
def plugin_config(tmp_path: Path) -> PluginConfig:
    """PluginConfig pointing the cache and activation dirs into tmp_path."""
    return PluginConfig(
        cache_root=tmp_path / "cache",
        activation_dir=tmp_path / "skills",
    )


@pytest.fixture
def links(plugin_config: PluginConfig) -> LinkManager:
    """LinkManager over the temporary activation directory."""
    return LinkManager(plugin_config.activation_dir)


@pytest.fixture
def store(plugin_config: PluginConfig, fake_git: FakeGitClient, links: LinkManager) -> CacheStore:
    """CacheStore over the temporary cache root, backed by FakeGitClient."""
    return CacheStore(plugin_config.cache_root, fake_git, links)


@pytest.fixture
def manager(plugin_config: PluginConfig, fake_git: FakeGitClient) -> PluginManager:
    """PluginManager wired to temporary directories and FakeGitClient."""
    return PluginManager(plugin_config, git=fake_git)
