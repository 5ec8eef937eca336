"""silk: install, browse, and activate git-hosted agent skills.

Example:
    >>> from silk import PluginManager, SilkSettings, setup_logging
    >>> settings = SilkSettings()  # Loads from env and .env
    >>> setup_logging(settings.logging)
    >>> manager = PluginManager(settings.plugins)
    >>> manager.refresh()
"""

from silk.config import LoggingConfig, SilkSettings
from silk.display import RichRenderer
from silk.observability import setup_logging
from silk.plugins import (
    Plugin,
    PluginConfig,
    PluginError,
    PluginManager,
    RepoRef,
    Skill,
)
from silk.status import StatusKind, StatusManager

__version__ = "0.1.0"

__all__ = [
    "LoggingConfig",
    "Plugin",
    "PluginConfig",
    "PluginError",
    "PluginManager",
    "RepoRef",
    "RichRenderer",
    "SilkSettings",
    "Skill",
    "StatusKind",
    "StatusManager",
    "__version__",
    "setup_logging",
]
