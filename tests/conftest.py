"""Shared fixtures for the backup service tests."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from backup_service.config import SyncConfig, reset_settings


BASE_MTIME_NS = 1_700_000_000 * 1_000_000_000


def write_file(path: Path, content: str = "data", mtime_ns: int = BASE_MTIME_NS) -> Path:
    """Create ``path`` (and its parents) with a fixed modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


@pytest.fixture
def roots(tmp_path):
    """Existing source and target roots below a common mount directory."""
    source = tmp_path / "data"
    target = tmp_path / "backup"
    source.mkdir()
    target.mkdir()
    return source, target


@pytest.fixture
def sync_config(roots):
    source, target = roots
    return SyncConfig(source=str(source), target=str(target), pollingInS=60)


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """Point the application settings at a temporary data directory."""
    data_dir = tmp_path / "appdata"
    monkeypatch.setenv("BACKUP_SERVICE_DATA_DIR", str(data_dir))
    reset_settings()
    yield data_dir
    reset_settings()
