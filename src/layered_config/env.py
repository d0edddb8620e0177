"""Environment variable resolution.

Every leaf of a schema maps to one environment variable whose name is built
from the leaf's field path:

    LEGACY   database.poolSize -> DATABASE_POOLSIZE
    REVISED  database.poolSize -> DATABASE__POOLSIZE

Segments are upper-cased as a whole; camel-case words are not split, so
``fooBar`` and ``foobar`` share ``FOOBAR``. Under LEGACY a flat ``foo_bar``
and a nested ``foo.bar`` share ``FOO_BAR``. Both paths are populated from
the one variable.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Sequence, Tuple, Union

from dotenv import dotenv_values

from layered_config.schema import SchemaNode


class EnvNaming(str, Enum):
    """Separator convention for environment variable names."""

    LEGACY = "_"
    REVISED = "__"

    @property
    def separator(self) -> str:
        return self.value


def env_var_name(
    path: Sequence[str],
    naming: EnvNaming = EnvNaming.LEGACY,
    prefix: Optional[str] = None,
) -> str:
    """Build the environment variable name for a field path.

    Args:
        path: Field path segments, e.g. ("database", "poolSize")
        naming: Separator convention
        prefix: Optional leading segment, e.g. "APP" -> APP_DATABASE_POOLSIZE

    Returns:
        The upper-cased variable name
    """
    segments = [prefix, *path] if prefix else list(path)
    return naming.separator.join(segment.upper() for segment in segments)


def _set_path(output: Dict[str, Any], path: Sequence[str], value: str) -> None:
    target = output
    for key in path[:-1]:
        child = target.get(key)
        if not isinstance(child, dict):
            child = target[key] = {}
        target = child
    target[path[-1]] = value


def resolve_env(
    schema: SchemaNode,
    environ: Mapping[str, str],
    naming: EnvNaming = EnvNaming.LEGACY,
    prefix: Optional[str] = None,
) -> Dict[str, Any]:
    """Read the values of every schema leaf from ``environ``.

    Only paths declared by the schema are populated. Unset variables leave
    their path out entirely; an empty string counts as set. Values are the
    raw strings, coercion is left to the validator.

    A node that reappears among its own ancestors (a self-referencing model)
    is read as a leaf at that path instead of being descended into again, so
    ``CHILD`` feeds a recursive ``child`` field and ``CHILD_NAME`` is never read.

    Args:
        schema: Root schema node
        environ: Environment mapping, e.g. os.environ
        naming: Separator convention
        prefix: Optional variable name prefix

    Returns:
        Nested dict of resolved values
    """
    output: Dict[str, Any] = {}

    def read_leaf(path: Tuple[str, ...]) -> None:
        value = environ.get(env_var_name(path, naming, prefix))
        if value is not None:
            _set_path(output, path, value)

    def walk(node: SchemaNode, path: Tuple[str, ...], lineage: Tuple[SchemaNode, ...]) -> None:
        for key, child in node.children().items():
            child_path = path + (key,)
            if child in lineage or not child.children():
                read_leaf(child_path)
            else:
                walk(child, child_path, lineage + (child,))

    walk(schema, (), (schema,))
    return output


class EnvLoader:
    """Load environment-style key/value pairs with optional .env support.

    Precedence (low -> high):
    1) .env file (only when one is given and exists)
    2) OS environment variables
    """

    def __init__(self, env_file: Optional[Union[Path, str]] = None) -> None:
        self.env_file = Path(env_file) if env_file else None

    def load(self) -> MutableMapping[str, str]:
        """Return a fresh mapping of the current environment."""
        data: MutableMapping[str, str] = {}

        if self.env_file is not None and self.env_file.exists():
            file_values = dotenv_values(self.env_file)
            data.update({k: v for k, v in file_values.items() if v is not None})

        data.update(os.environ)

        return data


__all__ = ["EnvNaming", "env_var_name", "resolve_env", "EnvLoader"]
