"""Logging configuration for the studyhub package."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from rich.logging import RichHandler

PACKAGE_LOGGER = "studyhub"


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Parameters
    ----------
    level : str
        Log level.
    format : str
        Log format string.
    file : Path | None
        Log file path.
    console : bool
        Whether to log to console.
    rich : bool
        Whether console output goes through rich.

    Examples
    --------
    >>> config = LoggingConfig()
    >>> config.level
    'INFO'
    >>> config.console
    True
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Path | None = Field(default=None, description="Log file path")
    console: bool = Field(default=True, description="Log to console")
    rich: bool = Field(default=True, description="Render console logs with rich")


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install handlers on the package logger according to ``config``.

    Handlers installed by an earlier call are removed first, so calling this
    again with a new configuration replaces the previous setup.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.

    Returns
    -------
    logging.Logger
        The configured ``studyhub`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_studyhub_managed", False):
            logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = []
    if config.console:
        if config.rich:
            handlers.append(RichHandler(show_path=False, rich_tracebacks=True))
        else:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(config.format))
            handlers.append(console_handler)
    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(logging.Formatter(config.format))
        handlers.append(file_handler)

    for handler in handlers:
        handler._studyhub_managed = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(config.level)
    return logger
