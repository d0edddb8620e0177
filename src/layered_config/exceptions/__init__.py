"""Exceptions for layered-config.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from layered_config.exceptions import (
        LayeredConfigError,
        SourceReadError,
        ConfigValidationError,
    )
"""

from layered_config.exceptions.base import (
    ConfigValidationError,
    ConfigurationError,
    DecodeShapeError,
    LayeredConfigError,
    SourceReadError,
    ValidationIssue,
)

__all__ = [
    "LayeredConfigError",
    "ConfigurationError",
    "SourceReadError",
    "DecodeShapeError",
    "ConfigValidationError",
    "ValidationIssue",
]
