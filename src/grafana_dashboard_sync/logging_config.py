"""Logging configuration utilities for grafana-dashboard-sync.

The library itself only emits records through loguru's `logger`. Applications (and the CLI) decide where they go by
calling `configure_logger`.
"""

import sys
from typing import Literal

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

JOB_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[job]}</magenta> | "
    "<level>{message}</level>"
)


def configure_logger(
    level: LogLevel = "INFO",
    *,
    serialize: bool = False,
    format_string: str | None = None,
    colorize: bool = True,
) -> None:
    """Configure the grafana-dashboard-sync logger.

    Args:
        level: The minimum log level to display. One of:
              "TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"
        serialize: Emit every record as a JSON object (including values bound with `logger.bind`) instead of text.
            This is what `--log-as-json` turns on.
        format_string: Custom format string for log messages. If None, uses a format which shows the job name.
        colorize: Whether to use colored output (default: True). Ignored when `serialize` is set.

    Examples:
        ```python
        from grafana_dashboard_sync.logging_config import configure_logger

        # Enable debug logging for troubleshooting
        configure_logger("DEBUG")

        # Structured output for log shippers
        configure_logger("INFO", serialize=True)
        ```
    """
    logger.remove()
    logger.configure(extra={"job": "-"})

    if serialize:
        logger.add(sys.stderr, level=level, serialize=True)
        return

    logger.add(
        sys.stderr,
        level=level,
        format=format_string or JOB_FORMAT,
        colorize=colorize,
    )


def disable_logging() -> None:
    """Completely disable all logging from grafana-dashboard-sync."""
    logger.remove()


__all__ = [
    "DEFAULT_FORMAT",
    "JOB_FORMAT",
    "LogLevel",
    "configure_logger",
    "disable_logging",
]
