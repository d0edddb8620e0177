"""
Logger interface for layered-config.

Any object implementing this ABC can be handed to ``new_config(logger=...)``.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract base class for logging interface.

    Example:
        class MyLogger(Logger):
            def debug(self, message: str, **kwargs: Any) -> None:
                print(f"DEBUG: {message}")
            # ... implement other methods
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message.

        Args:
            message: The message to log
            **kwargs: Additional key-value pairs to include in the log
        """

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""

    @abstractmethod
    def get_session_id(self) -> str:
        """Return the identifier shared by every entry of this logger."""
