"""Layered config loader.

Collects config from three kinds of sources and merges them with a fixed
precedence, lowest first:

1) values passed to ``add_value``
2) files passed to ``add_file``
3) environment variables, when ``enable_env`` was called

Within values and within files, later additions override earlier ones. The
order of calls across kinds does not matter. Nothing is read until one of the
``parse`` methods runs, and every call re-reads all sources.

Example:
    from pydantic import BaseModel
    from layered_config import new_config, decode_yaml

    class Database(BaseModel):
        host: str = "localhost"
        port: int = 5432

    class AppConfig(BaseModel):
        debug: bool = False
        database: Database = Database()

    config = (
        new_config(AppConfig)
        .add_value({"debug": True})
        .add_file("config/base.json")
        .add_file(("config/local.yaml", decode_yaml))
        .enable_env(prefix="APP")
        .parse()
    )
    # APP_DATABASE_PORT=6543 overrides config.database.port
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar, Union, overload

from pydantic import BaseModel

from layered_config.env import EnvLoader, EnvNaming, resolve_env
from layered_config.exceptions import ConfigurationError, ConfigValidationError
from layered_config.logger import Logger, get_logger
from layered_config.merge import Record, deep_merge
from layered_config.schema import as_schema
from layered_config.sources import Decoder, FileSource, decode_json

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

PathLike = Union[str, Path]
FileEntry = Union[PathLike, Tuple[PathLike, Decoder]]


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a non-raising parse.

    Attributes:
        success: True when validation passed
        data: The validated value (None on failure)
        error: The validation error (None on success)
    """

    success: bool
    data: Optional[T] = None
    error: Optional[ConfigValidationError] = None

    @classmethod
    def ok(cls, data: T) -> "ParseResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ConfigValidationError) -> "ParseResult[T]":
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Return the data or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]


def _coerce_naming(naming: Union[EnvNaming, str]) -> EnvNaming:
    if isinstance(naming, EnvNaming):
        return naming
    if naming in ("_", "__"):
        return EnvNaming(naming)
    return EnvNaming[str(naming).upper()]


@dataclass(frozen=True)
class _EnvOptions:
    prefix: Optional[str] = None
    env_file: Optional[Path] = None


class ConfigLoader(Generic[T]):
    """Builder collecting config sources for one schema.

    Use ``new_config`` rather than instantiating directly.
    """

    def __init__(
        self,
        schema: Any,
        env_naming: Union[EnvNaming, str] = EnvNaming.LEGACY,
        logger: Optional[Logger] = None,
    ) -> None:
        self._schema = as_schema(schema)
        try:
            self._env_naming = _coerce_naming(env_naming)
        except (KeyError, ValueError) as exc:
            raise ConfigurationError(
                f"Unknown env naming {env_naming!r}; use EnvNaming.LEGACY or EnvNaming.REVISED",
                details={"env_naming": str(env_naming)},
            ) from exc
        self._logger = logger or get_logger()
        self._values: List[Mapping[str, Any]] = []
        self._files: List[FileSource] = []
        self._env: Optional[_EnvOptions] = None

    @property
    def schema(self) -> Any:
        return self._schema

    @property
    def env_naming(self) -> EnvNaming:
        return self._env_naming

    @property
    def values(self) -> Tuple[Mapping[str, Any], ...]:
        return tuple(self._values)

    @property
    def files(self) -> Tuple[FileSource, ...]:
        return tuple(self._files)

    @property
    def env_enabled(self) -> bool:
        return self._env is not None

    # ------------------------------------------------------------------
    # Source collection
    # ------------------------------------------------------------------

    def add_value(self, *records: Mapping[str, Any]) -> "ConfigLoader[T]":
        """Add in-memory records; later records override earlier ones.

        Raises:
            ConfigurationError: If a record is not a mapping
        """
        for record in records:
            if not isinstance(record, Mapping):
                raise ConfigurationError(
                    f"add_value expects mappings, got {type(record).__name__}",
                    details={"type": type(record).__name__},
                )
        self._values.extend(records)
        self._logger.debug("Added config values", count=len(records), total=len(self._values))
        return self

    def add_file(self, *files: FileEntry, decoder: Optional[Decoder] = None) -> "ConfigLoader[T]":
        """Add config files; later files override earlier ones.

        Each entry is a path, or a ``(path, decoder)`` pair. Bare paths use
        ``decoder`` when given, JSON otherwise. Files are not opened here.

        Raises:
            ConfigurationError: If an entry is neither a path nor a pair
        """
        default = decoder or decode_json
        added = [self._file_source(entry, default) for entry in files]
        self._files.extend(added)
        for source in added:
            self._logger.debug("Added config file", path=str(source.path))
        return self

    def enable_env(
        self,
        *,
        prefix: Optional[str] = None,
        env_file: Optional[PathLike] = None,
    ) -> "ConfigLoader[T]":
        """Read schema leaves from environment variables at parse time.

        Calling it again only replaces the options.

        Args:
            prefix: Optional variable name prefix, e.g. "APP"
            env_file: Optional .env file read beneath the process environment
        """
        self._env = _EnvOptions(prefix=prefix, env_file=Path(env_file) if env_file else None)
        self._logger.debug(
            "Enabled environment source",
            naming=self._env_naming.name,
            prefix=prefix,
            env_file=str(env_file) if env_file else None,
        )
        return self

    @staticmethod
    def _file_source(entry: FileEntry, default: Decoder) -> FileSource:
        if isinstance(entry, (str, Path)):
            return FileSource(Path(entry), default)
        if isinstance(entry, tuple) and len(entry) == 2 and callable(entry[1]):
            path, entry_decoder = entry
            if isinstance(path, (str, Path)):
                return FileSource(Path(path), entry_decoder)
        raise ConfigurationError(
            f"add_file expects a path or a (path, decoder) pair, got {entry!r}",
            details={"entry": repr(entry)},
        )

    # ------------------------------------------------------------------
    # Input assembly
    # ------------------------------------------------------------------

    def build_input(self) -> Record:
        """Read every source synchronously and return the merged record.

        Raises:
            SourceReadError: A file could not be read or decoded
        """
        files = [self._read_file(source) for source in self._files]
        return self._combine(files)

    async def build_input_async(self) -> Record:
        """Read files concurrently and return the merged record.

        Completion order does not affect the result: decoded files are merged
        in the order they were added.

        Raises:
            SourceReadError: The first file failure observed
        """
        files = await asyncio.gather(*(self._read_file_async(source) for source in self._files))
        return self._combine(list(files))

    def _read_file(self, source: FileSource) -> Record:
        self._logger.debug("Reading config file", path=str(source.path))
        return source.load()

    async def _read_file_async(self, source: FileSource) -> Record:
        self._logger.debug("Reading config file", path=str(source.path))
        return await source.load_async()

    def _combine(self, files: List[Record]) -> Record:
        return deep_merge(deep_merge(*self._values), deep_merge(*files), self._read_env())

    def _read_env(self) -> Record:
        if self._env is None:
            return {}
        environ = EnvLoader(self._env.env_file).load()
        resolved = resolve_env(self._schema, environ, self._env_naming, self._env.prefix)
        self._logger.debug("Resolved environment source", top_level_keys=sorted(resolved))
        return resolved

    # ------------------------------------------------------------------
    # Finalize
    # ------------------------------------------------------------------

    def parse(self) -> T:
        """Merge all sources and validate the result.

        Raises:
            SourceReadError: A file could not be read or decoded
            ConfigValidationError: The merged input failed validation
        """
        return self._schema.validate(self.build_input())

    def safe_parse(self) -> ParseResult[T]:
        """Like parse(), but validation failures are returned, not raised.

        Raises:
            SourceReadError: A file could not be read or decoded
        """
        record = self.build_input()
        try:
            return ParseResult.ok(self._schema.validate(record))
        except ConfigValidationError as exc:
            return ParseResult.fail(exc)

    async def parse_async(self) -> T:
        """Asynchronous parse(); files are read concurrently."""
        return await self._schema.validate_async(await self.build_input_async())

    async def safe_parse_async(self) -> ParseResult[T]:
        """Asynchronous safe_parse(); files are read concurrently."""
        record = await self.build_input_async()
        try:
            return ParseResult.ok(await self._schema.validate_async(record))
        except ConfigValidationError as exc:
            return ParseResult.fail(exc)


@overload
def new_config(
    schema: Type[M],
    *,
    env_naming: Union[EnvNaming, str] = ...,
    logger: Optional[Logger] = ...,
) -> ConfigLoader[M]: ...


@overload
def new_config(
    schema: Any,
    *,
    env_naming: Union[EnvNaming, str] = ...,
    logger: Optional[Logger] = ...,
) -> ConfigLoader[Any]: ...


def new_config(
    schema: Any,
    *,
    env_naming: Union[EnvNaming, str] = EnvNaming.LEGACY,
    logger: Optional[Logger] = None,
) -> ConfigLoader[Any]:
    """Create a ConfigLoader for ``schema``.

    Args:
        schema: A pydantic BaseModel subclass, or an object providing
            ``children()``, ``validate()`` and ``validate_async()``
        env_naming: Environment variable separator convention
        logger: Logger for source bookkeeping (defaults to get_logger())

    Example:
        config = new_config(AppConfig).enable_env().parse()
    """
    return ConfigLoader(schema, env_naming=env_naming, logger=logger)


__all__ = ["ConfigLoader", "ParseResult", "new_config"]
