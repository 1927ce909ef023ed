"""Shared test fixtures."""

from pathlib import Path

import pytest

from fileshelf.config import (
    ClipboardConfig,
    Config,
    ServerConfig,
    StorageConfig,
)
from fileshelf.core.paths import PathResolver


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Create the storage root directory."""
    root = tmp_path / "uploads"
    root.mkdir(exist_ok=True)
    return root


@pytest.fixture
def resolver(storage_root: Path) -> PathResolver:
    return PathResolver(storage_root)


@pytest.fixture
def test_config(tmp_path: Path, storage_root: Path) -> Config:
    """Create a test configuration with tmp_path directories.

    The clipboard rate limit is generous so HTTP tests never trip it by
    accident.
    """
    return Config(
        server=ServerConfig(),
        storage=StorageConfig(root=storage_root, state_dir=tmp_path / ".fileshelf"),
        clipboard=ClipboardConfig(rate_limit=1000),
    )
