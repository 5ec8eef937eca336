"""Cancellation and in-flight tracking for network operations.

Clone and update are the only slow operations. Each runs with a
``CancelToken``, and ``OperationTracker`` keeps at most one of them in
flight per ``RepoRef``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from silk.plugins.config import RepoRef
from silk.plugins.errors import OperationInProgressError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Cooperative cancellation flag for a clone or update.

    The git client waits on the token alongside the child process and stops
    the process when it fires; the cache store checks it again once the
    transfer returns.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Safe to call more than once."""
        self._event.set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()


@dataclass
class OperationHandle(Generic[T]):
    """Handle for a clone or update running as a background task.

    Attributes:
        ref: Repository the operation targets.
        operation: ``"install"`` or ``"update"``.
        token: Cancellation token shared with the running operation.
    """

    ref: RepoRef
    operation: str
    token: CancelToken = field(default_factory=CancelToken)
    _task: asyncio.Task[T] | None = field(default=None, repr=False)

    @property
    def is_complete(self) -> bool:
        """Check if the operation has finished without blocking."""
        if self._task is None:
            return True
        return self._task.done()

    async def result(self) -> T:
        """Await the operation result.

        Raises:
            RuntimeError: If no task is associated with this handle.
        """
        if self._task is None:
            msg = "No task associated with this operation handle"
            raise RuntimeError(msg)
        return await self._task

    def cancel(self) -> None:
        """Abandon the operation.

        Sets the token so the git client stops the child process and the
        cache store runs its failure cleanup. A finished operation is left
        alone.
        """
        self.token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()


class OperationTracker:
    """Registry of in-flight network operations keyed by ``RepoRef``."""

    def __init__(self) -> None:
        self._active: dict[RepoRef, tuple[str, CancelToken]] = {}

    @contextmanager
    def begin(
        self,
        ref: RepoRef,
        operation: str,
        token: CancelToken | None = None,
    ) -> Iterator[CancelToken]:
        """Claim ``ref`` for the duration of the ``with`` block.

        Args:
            ref: Repository the operation targets.
            operation: Operation name used in error and log messages.
            token: Existing token to register, or ``None`` to create one.

        Yields:
            The cancellation token for the operation.

        Raises:
            OperationInProgressError: If ``ref`` already has an operation
                in flight.
        """
        token = self.claim(ref, operation, token)
        try:
            yield token
        finally:
            self.release(ref)

    def claim(
        self,
        ref: RepoRef,
        operation: str,
        token: CancelToken | None = None,
    ) -> CancelToken:
        """Mark ``ref`` as busy until ``release()`` is called.

        Raises:
            OperationInProgressError: If ``ref`` already has an operation
                in flight.
        """
        if ref in self._active:
            raise OperationInProgressError(ref, self._active[ref][0])

        token = token or CancelToken()
        self._active[ref] = (operation, token)
        logger.debug("Started %s of %s", operation, ref)
        return token

    def release(self, ref: RepoRef) -> None:
        """Mark ``ref`` as idle. Releasing an idle ref is a no-op."""
        entry = self._active.pop(ref, None)
        if entry is not None:
            logger.debug("Finished %s of %s", entry[0], ref)

    def is_busy(self, ref: RepoRef) -> bool:
        """Return whether ``ref`` has an operation in flight."""
        return ref in self._active

    def cancel(self, ref: RepoRef) -> bool:
        """Request cancellation of the operation on ``ref``.

        Returns:
            ``True`` if an operation was in flight, ``False`` otherwise.
        """
        entry = self._active.get(ref)
        if entry is None:
            return False
        logger.info("Cancelling %s of %s", entry[0], ref)
        entry[1].cancel()
        return True

    def active(self) -> dict[RepoRef, str]:
        """Return a copy of the in-flight operations."""
        return {ref: operation for ref, (operation, _token) in self._active.items()}

    def __len__(self) -> int:
        return len(self._active)
