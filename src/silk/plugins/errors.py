"""Plugin subsystem exceptions."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from silk.plugins.config import RepoRef


class PluginError(Exception):
    """Base exception for all plugin-related errors.

    All custom exceptions in the plugin subsystem inherit from this class,
    allowing the interactive layer to catch and render every engine error
    with a single handler.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}({self.message!r})"


class InvalidReferenceError(PluginError):
    """Raised when a user-typed repository reference cannot be parsed.

    Attributes:
        reference: The raw reference as typed by the user.
        reason: Why the reference was rejected.
    """

    def __init__(self, reference: str, reason: str) -> None:
        """Initialize the error.

        Args:
            reference: The raw reference as typed by the user.
            reason: Why the reference was rejected.
        """
        self.reference = reference
        self.reason = reason
        super().__init__(f"Invalid repository reference {reference!r}: {reason}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.reference, self.reason))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(reference={self.reference!r}, reason={self.reason!r})"


class AlreadyExistsError(PluginError):
    """Raised when a clone target already exists in the cache.

    Attributes:
        ref: Repository reference that is already installed.
        path: Cache path that already exists.
    """

    def __init__(self, ref: RepoRef, path: str | Path) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference that is already installed.
            path: Cache path that already exists.
        """
        self.ref = ref
        self.path = Path(path)
        super().__init__(f"Plugin '{ref}' is already installed at {self.path}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref, str(self.path)))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(ref={self.ref!r}, path={str(self.path)!r})"


class NotFoundError(PluginError):
    """Raised when a plugin's cache directory does not exist.

    Attributes:
        ref: Repository reference that is not installed.
        path: Cache path that was checked.
    """

    def __init__(self, ref: RepoRef, path: str | Path) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference that is not installed.
            path: Cache path that was checked.
        """
        self.ref = ref
        self.path = Path(path)
        super().__init__(f"Plugin '{ref}' is not installed (no directory at {self.path})")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref, str(self.path)))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(ref={self.ref!r}, path={str(self.path)!r})"


class FetchFailedError(PluginError):
    """Raised when the git client reports a failed clone or pull.

    Attributes:
        ref: Repository reference being fetched.
        reason: Opaque diagnostic reported by the git client.
    """

    def __init__(self, ref: RepoRef, reason: str) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference being fetched.
            reason: Opaque diagnostic reported by the git client.
        """
        self.ref = ref
        self.reason = reason
        super().__init__(f"Fetch failed for '{ref}': {reason}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref, self.reason))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(ref={self.ref!r}, reason={self.reason!r})"


class FetchCancelledError(FetchFailedError):
    """Raised when an in-flight clone or update was abandoned by the user.

    Attributes:
        ref: Repository reference whose fetch was cancelled.
    """

    def __init__(self, ref: RepoRef) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference whose fetch was cancelled.
        """
        super().__init__(ref, "operation cancelled")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref,))


class NameCollisionError(PluginError):
    """Raised when a link name is taken by an entry that is not our link.

    Attributes:
        name: Qualified skill name used as the link name.
        path: Path of the conflicting activation directory entry.
    """

    def __init__(self, name: str, path: str | Path) -> None:
        """Initialize the error.

        Args:
            name: Qualified skill name used as the link name.
            path: Path of the conflicting activation directory entry.
        """
        self.name = name
        self.path = Path(path)
        super().__init__(f"Cannot link skill '{name}': {self.path} already exists")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.name, str(self.path)))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(name={self.name!r}, path={str(self.path)!r})"


class ForeignLinkError(PluginError):
    """Raised when refusing to remove a link that points somewhere else.

    Attributes:
        name: Qualified skill name used as the link name.
        path: Path of the activation directory entry.
        target: Where the entry actually points, if it is a symlink.
    """

    def __init__(self, name: str, path: str | Path, target: str | None = None) -> None:
        """Initialize the error.

        Args:
            name: Qualified skill name used as the link name.
            path: Path of the activation directory entry.
            target: Where the entry actually points, if it is a symlink.
        """
        self.name = name
        self.path = Path(path)
        self.target = target
        detail = f"points to {target}" if target else "is not a symbolic link"
        super().__init__(f"Refusing to unlink skill '{name}': {self.path} {detail}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.name, str(self.path), self.target))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"path={str(self.path)!r}, target={self.target!r})"
        )


class OperationInProgressError(PluginError):
    """Raised when a network operation is already running for a plugin.

    Attributes:
        ref: Repository reference that is busy.
        operation: Name of the operation already in flight.
    """

    def __init__(self, ref: RepoRef, operation: str) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference that is busy.
            operation: Name of the operation already in flight.
        """
        self.ref = ref
        self.operation = operation
        super().__init__(f"An {operation} of '{ref}' is already in progress")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref, self.operation))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(ref={self.ref!r}, operation={self.operation!r})"


class DuplicateSkillError(PluginError):
    """Raised when two skills in one snapshot share a qualified name.

    Attributes:
        name: Qualified name that has duplicates.
        paths: Source directories of the duplicates.
    """

    def __init__(self, name: str, paths: list[str | Path]) -> None:
        """Initialize the error.

        Args:
            name: Qualified name that has duplicates.
            paths: Source directories of the duplicates.
        """
        self.name = name
        self.paths = [Path(p) for p in paths]
        path_list = ", ".join(str(p) for p in self.paths)
        super().__init__(f"Duplicate qualified skill name '{name}': {path_list}")

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.name, [str(p) for p in self.paths]))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        path_strs = [str(p) for p in self.paths]
        return f"{type(self).__name__}(name={self.name!r}, paths={path_strs!r})"


class QualifiedNameConflictError(PluginError):
    """Raised when a plugin ships a skill whose qualified name is already taken.

    Qualified names leave out the host, so two repositories with the same
    owner and name on different hosts can collide.

    Attributes:
        ref: Repository reference whose skill was rejected.
        name: Qualified name already in use.
        existing: Repository reference that owns the name.
    """

    def __init__(self, ref: RepoRef, name: str, existing: RepoRef) -> None:
        """Initialize the error.

        Args:
            ref: Repository reference whose skill was rejected.
            name: Qualified name already in use.
            existing: Repository reference that owns the name.
        """
        self.ref = ref
        self.name = name
        self.existing = existing
        super().__init__(
            f"Cannot install '{ref}': skill name '{name}' is already provided by '{existing}'"
        )

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.ref, self.name, self.existing))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{type(self).__name__}(ref={self.ref!r}, "
            f"name={self.name!r}, existing={self.existing!r})"
        )


class UnknownTargetError(PluginError):
    """Raised when an activation target name is not configured.

    Attributes:
        target: Requested target name.
        available: Configured target names.
    """

    def __init__(self, target: str, available: list[str]) -> None:
        """Initialize the error.

        Args:
            target: Requested target name.
            available: Configured target names.
        """
        self.target = target
        self.available = list(available)
        super().__init__(
            f"Unknown link target '{target}'. Available: {', '.join(self.available)}"
        )

    def __reduce__(self) -> tuple:
        """Support pickling by returning constructor arguments."""
        return (type(self), (self.target, self.available))

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{type(self).__name__}(target={self.target!r}, available={self.available!r})"
