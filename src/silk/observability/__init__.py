"""Logging setup.

Exports:
- setup_logging: Attach stream and file handlers to the ``silk`` logger
"""

from silk.observability.logging import ROOT_LOGGER_NAME, setup_logging

__all__ = [
    "ROOT_LOGGER_NAME",
    "setup_logging",
]
