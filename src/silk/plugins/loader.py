"""Best-effort metadata reader for skill manifests.

Only the presence of a manifest decides whether a directory is a skill; the
YAML frontmatter is read solely to show a description in listings, so every
failure here degrades to ``None``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_DELIMITER = "---"

# Manifests larger than this are not parsed for metadata.
_MAX_MANIFEST_BYTES = 256 * 1024


def read_frontmatter(manifest: Path) -> dict[str, Any] | None:
    """Parse the YAML frontmatter block at the top of ``manifest``.

    Args:
        manifest: Path to a skill manifest file.

    Returns:
        The frontmatter mapping, or ``None`` if the file has no frontmatter
        or it cannot be read or parsed.
    """
    try:
        if manifest.stat().st_size > _MAX_MANIFEST_BYTES:
            logger.debug("Manifest too large to parse metadata: %s", manifest)
            return None
        content = manifest.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read manifest %s: %s", manifest, exc)
        return None

    if not content.startswith(_DELIMITER):
        return None

    end = content.find(f"\n{_DELIMITER}", len(_DELIMITER))
    if end == -1:
        logger.debug("Manifest frontmatter is not closed: %s", manifest)
        return None

    try:
        data = yaml.safe_load(content[len(_DELIMITER) : end])
    except yaml.YAMLError as exc:
        logger.debug("Invalid YAML frontmatter in %s: %s", manifest, exc)
        return None

    if not isinstance(data, dict):
        return None
    return data


def read_description(manifest: Path) -> str | None:
    """Return the ``description`` field from the manifest frontmatter."""
    frontmatter = read_frontmatter(manifest)
    if frontmatter is None:
        return None

    description = frontmatter.get("description")
    if not isinstance(description, str):
        return None
    return " ".join(description.split()) or None
