"""Repository reference parsing.

Turns what a user types into the install prompt into a canonical
``RepoRef``. Three forms are accepted, tried in this order:

1. ``https://<host>/<owner>/<repo>`` (optional ``.git``, optional trailing ``/``)
2. ``git@<host>:<owner>/<repo>`` (optional ``.git``)
3. ``<owner>/<repo>`` shorthand, resolved against the default host

Parsing is pure string work; nothing here touches the network.
"""

from __future__ import annotations

import re

from silk.plugins.config import DEFAULT_HOST, RepoRef
from silk.plugins.errors import InvalidReferenceError

_HTTPS_PREFIX = "https://"
_SSH_PREFIX = "git@"

# Whitespace or control characters anywhere in the reference.
_BAD_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


def resolve(text: str, *, default_host: str = DEFAULT_HOST) -> RepoRef:
    """Resolve a user-supplied repository reference.

    Args:
        text: Raw reference, e.g. ``https://github.com/foo/bar.git``,
            ``git@github.com:foo/bar`` or ``foo/bar``.
        default_host: Host used for the ``owner/repo`` shorthand.

    Returns:
        The canonical ``RepoRef``.

    Raises:
        InvalidReferenceError: If the reference matches none of the
            accepted forms.
    """
    reference = text.strip()
    if not reference:
        raise InvalidReferenceError(text, "reference is empty")
    if _BAD_CHARS.search(reference):
        raise InvalidReferenceError(text, "reference contains whitespace or control characters")

    if reference.startswith(_HTTPS_PREFIX):
        rest = reference[len(_HTTPS_PREFIX) :]
        host, sep, path = rest.partition("/")
        if not sep:
            raise InvalidReferenceError(text, "URL has no owner/repo path")
        return _build(text, host, path.rstrip("/"))

    if reference.startswith(_SSH_PREFIX):
        rest = reference[len(_SSH_PREFIX) :]
        host, sep, path = rest.partition(":")
        if not sep:
            raise InvalidReferenceError(text, "SSH reference is missing ':'")
        return _build(text, host, path)

    if "://" in reference or ":" in reference:
        raise InvalidReferenceError(text, "unsupported scheme")

    if reference.count("/") != 1:
        raise InvalidReferenceError(text, "expected exactly one '/' in owner/repo shorthand")
    return _build(text, default_host, reference)


def _build(original: str, host: str, path: str) -> RepoRef:
    """Split ``owner/repo[.git]`` and construct the ``RepoRef``."""
    if not host:
        raise InvalidReferenceError(original, "host is empty")

    parts = path.split("/")
    if len(parts) != 2:
        raise InvalidReferenceError(original, "expected <owner>/<repo>")

    owner, repo = parts
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        raise InvalidReferenceError(original, "owner and repo must not be empty")

    try:
        return RepoRef(host=host.lower(), owner=owner, repo=repo)
    except ValueError as exc:
        raise InvalidReferenceError(original, str(exc)) from exc
