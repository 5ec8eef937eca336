"""Logging configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseModel):
    """Configuration for the ``silk`` logger.

    Attributes:
        level: Minimum level emitted by the ``silk`` logger.
        format: ``logging.Formatter`` format string.
        file: Optional log file; ``~`` is expanded.
    """

    level: LogLevel = Field(default="INFO", description="Minimum log level")
    format: str = Field(
        default="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        description="Log record format string",
    )
    file: Path | None = Field(default=None, description="Optional log file path")
