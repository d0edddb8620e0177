"""Base exception classes for layered-config.

All layered-config exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

PathSegment = Union[str, int]


class LayeredConfigError(Exception):
    """Base exception for all layered-config errors.

    Attributes:
        code: Machine-readable error code (e.g., "SOURCE_READ_FAILED")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with structured information.

        Args:
            code: Machine-readable error code
            message: Human-readable error message
            details: Optional additional context
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, and details keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(LayeredConfigError):
    """Raised when a loader is set up with invalid arguments."""

    def __init__(
        self,
        message: str,
        code: str = "INVALID_CONFIGURATION",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code=code, message=message, details=details)


class SourceReadError(LayeredConfigError):
    """Raised when a config file cannot be read or decoded.

    Fatal to the finalize call that triggered the read. The underlying
    exception is available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        code: str = "SOURCE_READ_FAILED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(code=code, message=message, details=details)


class DecodeShapeError(SourceReadError):
    """Raised when a decoder returns something other than a mapping."""

    def __init__(
        self,
        message: str,
        code: str = "DECODE_SHAPE_INVALID",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


@dataclass(frozen=True)
class ValidationIssue:
    """One violation reported by the validator.

    Attributes:
        path: Field path of the offending value (e.g. ("database", "port"))
        code: Error classification (e.g. "missing", "string_type")
        message: Human-readable description
    """

    path: Tuple[PathSegment, ...]
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": list(self.path), "code": self.code, "message": self.message}


class ConfigValidationError(LayeredConfigError):
    """Raised when the merged input does not satisfy the schema.

    Attributes:
        issues: One ValidationIssue per violation, in validator order
    """

    def __init__(
        self,
        issues: Sequence[ValidationIssue],
        message: Optional[str] = None,
        code: str = "VALIDATION_FAILED",
    ):
        self.issues: List[ValidationIssue] = list(issues)
        if message is None:
            count = len(self.issues)
            message = f"{count} validation error{'s' if count != 1 else ''} in configuration"
        super().__init__(
            code=code,
            message=message,
            details={"issues": [issue.to_dict() for issue in self.issues]},
        )
