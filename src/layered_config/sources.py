"""File-backed config sources and the decoders that parse them.

A decoder is any callable taking the raw file bytes and returning the parsed
value. The value must be a mapping before it can be merged.
"""

from __future__ import annotations

import asyncio
import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping

import yaml

from layered_config.exceptions import DecodeShapeError, SourceReadError

Decoder = Callable[[bytes], Any]


def decode_json(data: bytes) -> Any:
    """Parse UTF-8 JSON text."""
    return json.loads(data.decode("utf-8"))


def decode_yaml(data: bytes) -> Any:
    """Parse YAML with ``yaml.safe_load``; an empty document becomes ``{}``."""
    loaded = yaml.safe_load(data)
    return {} if loaded is None else loaded


def decode_toml(data: bytes) -> Any:
    """Parse UTF-8 TOML text."""
    return tomllib.loads(data.decode("utf-8"))


@dataclass(frozen=True)
class FileSource:
    """A config file and the decoder used to parse it.

    Attributes:
        path: File location
        decoder: Callable turning the file bytes into a mapping
    """

    path: Path
    decoder: Decoder = field(default=decode_json)

    def load(self) -> Dict[str, Any]:
        """Read and decode the file.

        Raises:
            SourceReadError: The file cannot be read or the decoder failed
            DecodeShapeError: The decoder returned a non-mapping value
        """
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            raise SourceReadError(
                f"Cannot read config file {self.path}: {exc}",
                details={"path": str(self.path)},
            ) from exc

        try:
            value = self.decoder(raw)
        except Exception as exc:
            raise SourceReadError(
                f"Cannot decode config file {self.path}: {exc}",
                details={"path": str(self.path), "decoder": _decoder_name(self.decoder)},
            ) from exc

        if not isinstance(value, Mapping):
            raise DecodeShapeError(
                f"Config file {self.path} must decode to a mapping, got {type(value).__name__}",
                details={"path": str(self.path), "type": type(value).__name__},
            )
        return dict(value)

    async def load_async(self) -> Dict[str, Any]:
        """Run load() in a worker thread."""
        return await asyncio.to_thread(self.load)


def _decoder_name(decoder: Decoder) -> str:
    return getattr(decoder, "__qualname__", None) or repr(decoder)


__all__ = ["Decoder", "FileSource", "decode_json", "decode_yaml", "decode_toml"]
