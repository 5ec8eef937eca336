"""Git transport capability.

The engine never interprets git output beyond success and an opaque
diagnostic string. ``GitClient`` is the injectable seam; tests substitute a
fake client, and ``SubprocessGitClient`` shells out to the ``git``
executable.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from silk.plugins.tasks import CancelToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitResult:
    """Outcome of a git operation.

    Attributes:
        ok: Whether the operation succeeded.
        detail: Diagnostic text (usually stderr) for display on failure.
    """

    ok: bool
    detail: str = ""


@runtime_checkable
class GitClient(Protocol):
    """Clone and fast-forward operations used by the cache store."""

    async def clone(
        self,
        remote_url: str,
        dest: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult: ...

    async def pull(
        self,
        repo_path: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult: ...


class SubprocessGitClient:
    """``GitClient`` backed by the ``git`` executable.

    Clones are shallow (``--depth 1``) and pulls are fast-forward only, so
    an update never creates merge commits in the cache.

    Args:
        executable: Name or path of the git binary.
        timeout: Seconds before the child process is killed (``None`` = no limit).
    """

    def __init__(self, executable: str = "git", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    async def clone(
        self,
        remote_url: str,
        dest: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult:
        """Shallow-clone ``remote_url`` into ``dest``."""
        return await self._run(
            ["clone", "--depth", "1", remote_url, str(dest)],
            cwd=None,
            cancel=cancel,
        )

    async def pull(
        self,
        repo_path: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> GitResult:
        """Fast-forward the clone at ``repo_path`` to its remote."""
        return await self._run(["pull", "--ff-only"], cwd=repo_path, cancel=cancel)

    async def _run(
        self,
        args: list[str],
        *,
        cwd: Path | None,
        cancel: CancelToken | None,
    ) -> GitResult:
        """Run git with ``args`` and collapse the outcome into a ``GitResult``."""
        env = dict(os.environ)
        # Never block on an interactive credential prompt.
        env["GIT_TERMINAL_PROMPT"] = "0"

        logger.debug("Running %s %s", self.executable, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                cwd=str(cwd) if cwd else None,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return GitResult(ok=False, detail=f"{self.executable} is not installed or not in PATH")
        except OSError as exc:
            return GitResult(ok=False, detail=f"failed to start {self.executable}: {exc}")

        communicate = asyncio.ensure_future(proc.communicate())
        waiters: set[asyncio.Future] = {communicate}
        cancel_wait: asyncio.Future | None = None
        if cancel is not None:
            cancel_wait = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_wait)

        try:
            done, _pending = await asyncio.wait(
                waiters,
                timeout=self.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            await _terminate(proc, communicate)
            raise
        finally:
            if cancel_wait is not None and not cancel_wait.done():
                cancel_wait.cancel()

        if communicate not in done:
            await _terminate(proc, communicate)
            if cancel is not None and cancel.cancelled:
                return GitResult(ok=False, detail="cancelled")
            return GitResult(ok=False, detail=f"timed out after {self.timeout} seconds")

        stdout, stderr = communicate.result()
        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or stdout.decode(
                errors="replace"
            ).strip()
            return GitResult(ok=False, detail=detail or f"git exited with {proc.returncode}")
        return GitResult(ok=True)


async def _terminate(proc: asyncio.subprocess.Process, communicate: asyncio.Future) -> None:
    """Kill a running git process and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    communicate.cancel()
    await proc.wait()
