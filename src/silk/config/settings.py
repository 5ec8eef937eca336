"""Root settings for silk.

Precedence: init kwargs > env vars > .env file > defaults

Environment variables use the ``SILK_`` prefix and ``__`` for nesting::

    SILK_PLUGINS__CACHE_ROOT=/srv/silk/repos
    SILK_LOGGING__LEVEL=DEBUG
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from silk.config.logging_config import LoggingConfig
from silk.plugins.config import PluginConfig


class SilkSettings(BaseSettings):
    """Root configuration.

    Attributes:
        plugins: Plugin engine configuration.
        logging: Logging configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="SILK_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    plugins: PluginConfig = Field(default_factory=PluginConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
