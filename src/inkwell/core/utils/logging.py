"""
Logging configuration using loguru.

Library modules log through ``from loguru import logger`` and never configure
sinks themselves. Applications (the CLI, a notebook) call ``setup_logging``
once, or ``setup_logging_from_config`` to take level and log directory from
an inkwell ``Config``.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from inkwell.core.config import Config

LOG_FILE_NAME = "inkwell.log"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    fmt: str = "<level>[{level.name}]</level> {message}",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Configure loguru with console and optional file output.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        fmt: Loguru format string for the console sink.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=fmt)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}",
            rotation=rotation,
            retention=retention,
        )


def setup_logging_from_config(config: Config, to_file: bool = False) -> str | None:
    """Configure logging from ``logging.level`` and ``paths.log_dir``.

    Returns the log file path when a file sink was added.
    """
    log_file = None
    if to_file:
        log_dir = os.path.expanduser(config.get("paths.log_dir", ""))
        if log_dir:
            log_file = os.path.join(log_dir, LOG_FILE_NAME)
    setup_logging(level=str(config.get("logging.level", "WARNING")), log_file=log_file)
    return log_file
