"""Plugin engine for git-hosted skill collections.

Installs plugin repositories into a local cache, discovers the skills they
ship, and activates skills by linking them into a shared skills directory.
The ``PluginManager`` facade composes all engine components behind a single
API.

Quick Start:
    >>> from silk.plugins import PluginManager
    >>> manager = PluginManager()
    >>> manager.refresh()
    >>> plugin = await manager.install("anthropics/skills")
    >>> manager.toggle_link(plugin.skills[0])

Classes:
    PluginManager: Top-level facade for the plugin engine.
    PluginRegistry: Snapshot index of installed plugins and skills.
    CacheStore: On-disk clone cache.
    LinkManager: Activation links in the shared skills directory.
    RepoRef: Canonical ``(host, owner, repo)`` identity.
    Plugin: Cloned repository and its skills.
    Skill: Skill unit discovered inside a plugin.
    PluginConfig: Configuration for the plugin engine.

Exceptions:
    PluginError: Base exception for all plugin-related errors.
    InvalidReferenceError: Reference cannot be parsed.
    AlreadyExistsError: Clone target already exists.
    NotFoundError: Plugin cache directory is missing.
    FetchFailedError: Clone or pull failed.
    FetchCancelledError: Clone or pull was abandoned.
    NameCollisionError: Link name is taken by a foreign entry.
    ForeignLinkError: Link points somewhere else.
    OperationInProgressError: Plugin already has a fetch in flight.
    DuplicateSkillError: Two skills share a qualified name.
    QualifiedNameConflictError: Install would reuse another plugin's skill name.
    UnknownTargetError: Activation target is not configured.
"""

from __future__ import annotations

from silk.plugins.config import Plugin, PluginConfig, RepoRef, Skill, qualified_name
from silk.plugins.errors import (
    AlreadyExistsError,
    DuplicateSkillError,
    FetchCancelledError,
    FetchFailedError,
    ForeignLinkError,
    InvalidReferenceError,
    NameCollisionError,
    NotFoundError,
    OperationInProgressError,
    PluginError,
    QualifiedNameConflictError,
    UnknownTargetError,
)
from silk.plugins.git import GitClient, GitResult, SubprocessGitClient
from silk.plugins.links import LinkManager
from silk.plugins.manager import PluginManager
from silk.plugins.registry import FilterView, PluginRegistry, RegistrySnapshot
from silk.plugins.source import resolve
from silk.plugins.store import CacheStore
from silk.plugins.tasks import CancelToken, OperationHandle, OperationTracker

__all__ = [
    "AlreadyExistsError",
    "CacheStore",
    "CancelToken",
    "DuplicateSkillError",
    "FetchCancelledError",
    "FetchFailedError",
    "FilterView",
    "ForeignLinkError",
    "GitClient",
    "GitResult",
    "InvalidReferenceError",
    "LinkManager",
    "NameCollisionError",
    "NotFoundError",
    "OperationHandle",
    "OperationInProgressError",
    "OperationTracker",
    "Plugin",
    "PluginConfig",
    "PluginError",
    "PluginManager",
    "PluginRegistry",
    "QualifiedNameConflictError",
    "RegistrySnapshot",
    "RepoRef",
    "Skill",
    "SubprocessGitClient",
    "UnknownTargetError",
    "qualified_name",
    "resolve",
]
