"""Shared fixtures for filegate tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from filegate.logging.ndjson import init_logging
from filegate.storage.local import LocalStorage


@pytest.fixture(autouse=True)
def log_dir(tmp_path: Path) -> Path:
    """Route NDJSON logs into the test's temp dir instead of backend/data/logs."""
    d = tmp_path / "logs"
    init_logging(level="debug", directory=str(d))
    return d


@pytest.fixture
def root(tmp_path: Path) -> Path:
    return tmp_path / "root"


@pytest.fixture
def storage(root: Path) -> LocalStorage:
    """LocalStorage rooted at a fresh temp directory."""
    return LocalStorage(root)
