"""
Default logger implementation writing plain lines to a stream.
"""

import sys
import uuid
from datetime import datetime, timezone
from typing import Any, TextIO

from .interface import Logger


class DefaultLogger(Logger):
    """Lightweight logger writing formatted lines to stderr.

    Example:
        logger = DefaultLogger(name="my-app")
        logger.debug("Reading config file", path="settings.json")
    """

    def __init__(
        self,
        name: str = "layered-config",
        output: TextIO = sys.stderr,
        include_timestamp: bool = True,
    ):
        self._name = name
        self._session_id = str(uuid.uuid4())
        self._output = output
        self._include_timestamp = include_timestamp

    def get_session_id(self) -> str:
        return self._session_id

    def _format_message(self, level: str, message: str, **kwargs: Any) -> str:
        parts = []

        if self._include_timestamp:
            parts.append(datetime.now(timezone.utc).isoformat())

        parts.append(f"[{level}]")
        parts.append(f"[{self._name}]")
        parts.append(f"[session:{self._session_id[:8]}]")
        parts.append(message)

        if kwargs:
            parts.append("(" + " ".join(f"{k}={v}" for k, v in kwargs.items()) + ")")

        return " ".join(parts)

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        print(self._format_message(level, message, **kwargs), file=self._output, flush=True)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)
