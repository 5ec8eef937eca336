"""Configuration system for silk.

Main exports:
- SilkSettings: Root configuration class
- LoggingConfig: Logging configuration
- PluginConfig: Plugin engine configuration (re-exported)
"""

from silk.config.logging_config import LoggingConfig
from silk.config.settings import SilkSettings
from silk.plugins.config import PluginConfig

__all__ = [
    "LoggingConfig",
    "PluginConfig",
    "SilkSettings",
]
