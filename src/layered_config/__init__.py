"""layered-config - layered configuration loading with validation.

Collects configuration from in-memory values, files and environment
variables, deep-merges them with a fixed precedence (values < files < env)
and validates the result against a pydantic model.

Modules:
- loader: ConfigLoader builder and new_config()
- merge: deep_merge() for nested records
- env: environment variable naming and resolution
- sources: file sources and JSON/YAML/TOML decoders
- schema: schema node / validator protocols and the pydantic adapter
- exceptions: structured error hierarchy
- logger: logging used by the loader
"""

__version__ = "1.0.0"

from layered_config.env import EnvLoader, EnvNaming, env_var_name, resolve_env
from layered_config.exceptions import (
    ConfigValidationError,
    ConfigurationError,
    DecodeShapeError,
    LayeredConfigError,
    SourceReadError,
    ValidationIssue,
)
from layered_config.loader import ConfigLoader, ParseResult, new_config
from layered_config.merge import deep_merge
from layered_config.schema import LeafNode, ModelSchema, SchemaNode, Validator, as_schema
from layered_config.sources import FileSource, decode_json, decode_toml, decode_yaml

__all__ = [
    "__version__",
    # Loader
    "new_config",
    "ConfigLoader",
    "ParseResult",
    # Merge
    "deep_merge",
    # Environment
    "EnvNaming",
    "EnvLoader",
    "env_var_name",
    "resolve_env",
    # Sources
    "FileSource",
    "decode_json",
    "decode_yaml",
    "decode_toml",
    # Schema
    "SchemaNode",
    "Validator",
    "LeafNode",
    "ModelSchema",
    "as_schema",
    # Exceptions
    "LayeredConfigError",
    "ConfigurationError",
    "SourceReadError",
    "DecodeShapeError",
    "ConfigValidationError",
    "ValidationIssue",
]
