"""Shared fixtures for layered-config tests."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Variables BasicConfig resolves under either naming convention
_BASIC_ENV_NAMES = (
    "STRING", "NUMBER", "OBJECT_A", "OBJECT_B", "OBJECT_C",
    "OBJECT__A", "OBJECT__B", "OBJECT__C",
)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove variables that BasicConfig would resolve."""
    for name in _BASIC_ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
