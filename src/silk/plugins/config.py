"""Plugin data models and configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

# Characters never allowed inside a RepoRef component. ``:`` separates the
# parts of a qualified skill name.
_FORBIDDEN = re.compile(r"[:/\\\s\x00-\x1f\x7f]")

DEFAULT_HOST = "github.com"
DEFAULT_MANIFEST_NAME = "SKILL.md"
DEFAULT_TARGET = "default"


@dataclass(frozen=True, order=True)
class RepoRef:
    """Canonical identity of a plugin repository.

    Immutable and hashable, so it doubles as the mapping key in the registry
    and as the mutual-exclusion key for in-flight network operations.

    Attributes:
        host: Git host, lowercase (e.g., ``github.com``).
        owner: Repository owner (user or organization).
        repo: Repository name without any ``.git`` suffix.
    """

    host: str
    owner: str
    repo: str

    def __post_init__(self) -> None:
        for label, value in (("host", self.host), ("owner", self.owner), ("repo", self.repo)):
            if not value:
                raise ValueError(f"RepoRef {label} must not be empty")
            if _FORBIDDEN.search(value):
                raise ValueError(f"RepoRef {label} contains invalid characters: {value!r}")
            if value in (".", ".."):
                raise ValueError(f"RepoRef {label} must not be {value!r}")
        if self.host != self.host.lower():
            raise ValueError(f"RepoRef host must be lowercase: {self.host!r}")

    @property
    def slug(self) -> str:
        """Short ``owner/repo`` form used in status messages."""
        return f"{self.owner}/{self.repo}"

    @property
    def remote_url(self) -> str:
        """HTTPS clone URL for this repository."""
        return f"https://{self.host}/{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.host}/{self.owner}/{self.repo}"


@dataclass(frozen=True)
class Skill:
    """A skill unit discovered inside a plugin.

    ``is_linked`` is a snapshot of the activation directory taken when the
    record was built; it is never written back and is recomputed on every
    refresh and after every link/unlink.

    Attributes:
        qualified_name: Globally unique ``owner:repo:name`` identifier.
        plugin_ref: Identity of the owning plugin.
        source_dir: Directory containing the skill manifest.
        is_linked: Whether an activation link currently points here.
        name: Local skill name within the plugin.
        description: Optional description from the manifest frontmatter.
    """

    qualified_name: str
    plugin_ref: RepoRef
    source_dir: Path
    is_linked: bool = False
    name: str = ""
    description: str | None = None

    @classmethod
    def create(
        cls,
        plugin_ref: RepoRef,
        name: str,
        source_dir: Path,
        *,
        is_linked: bool = False,
        description: str | None = None,
    ) -> Skill:
        """Build a skill, deriving its qualified name from the plugin identity."""
        return cls(
            qualified_name=qualified_name(plugin_ref, name),
            plugin_ref=plugin_ref,
            source_dir=source_dir,
            is_linked=is_linked,
            name=name,
            description=description,
        )


@dataclass(frozen=True)
class Plugin:
    """A cloned plugin repository and the skills it ships.

    Attributes:
        ref: Canonical repository identity.
        cache_path: Directory holding the clone.
        skills: Discovered skills in deterministic order.
    """

    ref: RepoRef
    cache_path: Path
    skills: tuple[Skill, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        """Plugin display name (the repository name)."""
        return self.ref.repo

    @property
    def linked_count(self) -> int:
        """Number of skills currently linked."""
        return sum(1 for skill in self.skills if skill.is_linked)


def qualified_name(ref: RepoRef, name: str) -> str:
    """Return the ``owner:repo:name`` identifier for a skill."""
    return f"{ref.owner}:{ref.repo}:{name}"


class PluginConfig(BaseModel):
    """Configuration for the plugin engine.

    Attributes:
        cache_root: Base directory for plugin clones (``~`` is expanded).
        activation_dir: Shared skills directory holding activation links.
        manifest_name: Filename that marks a directory as a skill unit.
        default_host: Host assumed for ``owner/repo`` shorthand references.
        git_timeout: Seconds before a clone or pull is abandoned (``None`` = no limit).
        link_targets: Extra named activation directories, linked alongside
            ``activation_dir`` (which is the ``default`` target).
    """

    cache_root: Path = Field(
        default=Path("~/.cache/silk/repos"),
        description="Base directory for plugin clones",
    )
    activation_dir: Path = Field(
        default=Path("~/.claude/skills"),
        description="Shared skills directory holding activation links",
    )
    manifest_name: str = Field(
        default=DEFAULT_MANIFEST_NAME,
        min_length=1,
        description="Filename that marks a directory as a skill unit",
    )
    default_host: str = Field(
        default=DEFAULT_HOST,
        min_length=1,
        description="Host assumed for owner/repo shorthand",
    )
    git_timeout: float | None = Field(
        default=300.0,
        gt=0,
        description="Seconds before a clone or pull is abandoned",
    )
    link_targets: dict[str, Path] = Field(
        default_factory=dict,
        description="Extra named activation directories",
    )

    @model_validator(mode="after")
    def _expand_dirs(self) -> PluginConfig:
        """Make directories absolute (expanding ``~``) and normalize the default host."""
        if DEFAULT_TARGET in self.link_targets:
            raise ValueError(f"Link target name {DEFAULT_TARGET!r} is reserved for activation_dir")
        for name in self.link_targets:
            if not name or _FORBIDDEN.search(name):
                raise ValueError(f"Invalid link target name: {name!r}")

        self.cache_root = self.cache_root.expanduser().absolute()
        self.activation_dir = self.activation_dir.expanduser().absolute()
        self.link_targets = {
            name: path.expanduser().absolute() for name, path in self.link_targets.items()
        }
        self.default_host = self.default_host.lower()
        return self

    def targets(self) -> dict[str, Path]:
        """All activation directories by name, the default target first."""
        return {DEFAULT_TARGET: self.activation_dir, **self.link_targets}
