"""
Logging for layered-config.

Usage:
    from layered_config.logger import get_logger, create_logger

    logger = get_logger()
    logger.debug("Reading config file", path="base.json")

    logger = create_logger(name="my-app", level=logging.DEBUG, json_format=True)

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is derived from the logger name (LAYERED_CONFIG for "layered-config")
"""

import logging
import os
from typing import Dict, Optional

from .default_logger import DefaultLogger
from .interface import Logger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter

DEFAULT_LOGGER_NAME = "layered-config"

_loggers: Dict[str, Logger] = {}


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix.

    Examples:
        "layered-config" -> "LAYERED_CONFIG"
        "my.app" -> "MY_APP"
    """
    return name.upper().replace("-", "_").replace(".", "_")


def create_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Create a new logger instance.

    Parameters left as None are read from {PREFIX}_LOG_LEVEL,
    {PREFIX}_LOG_FILE and {PREFIX}_LOG_JSON.

    Args:
        name: Logger name
        level: Logging level (defaults to INFO or env var)
        log_file: Optional file path for log output
        json_format: If True, output logs as JSON

    Returns:
        A configured Logger instance
    """
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{env_prefix}_LOG_FILE")

    if json_format is None:
        json_format = os.environ.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> Logger:
    """Get the shared logger for ``name``, creating it from the environment once.

    Example:
        # export LAYERED_CONFIG_LOG_LEVEL=DEBUG
        logger = get_logger()
    """
    if name not in _loggers:
        _loggers[name] = create_logger(name=name)
    return _loggers[name]


def reset_loggers() -> None:
    """Forget cached loggers so the next get_logger() re-reads the environment."""
    _loggers.clear()


__all__ = [
    "Logger",
    "DefaultLogger",
    "StructuredLogger",
    "JsonFormatter",
    "TextFormatter",
    "create_logger",
    "get_logger",
    "reset_loggers",
]
