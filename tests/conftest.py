"""Pytest fixtures for runtime diagnostics tests."""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from runtime_diagnostics import config
from runtime_diagnostics.config import Settings
from runtime_diagnostics.core.log_store import RollingLogStore
from runtime_diagnostics.core.session import SessionInfo


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep the settings cache and RUNTIME_DIAGNOSTICS_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith(config.ENV_PREFIX):
            monkeypatch.delenv(name)
    config._settings_cache = None
    yield
    config._settings_cache = None


@pytest.fixture
def session_info() -> SessionInfo:
    """Deterministic session marker."""
    return SessionInfo(
        date="2024-01-15 12:00:00",
        system="Linux 6.1",
        locale="en_US",
        timezone="UTC",
        version="1.2.3 (Python 3.12.0)",
    )


@pytest.fixture
def log_path(temp_dir: Path) -> Path:
    """Location of the log file inside the temporary directory."""
    return temp_dir / "logs" / "diagnostics.log"


@pytest.fixture
def test_settings(temp_dir: Path, log_path: Path) -> Settings:
    """Settings with every path inside the temporary directory."""
    return Settings(
        log_path=log_path,
        report_dir=temp_dir / "reports",
        minimum_free_disk_space=0,
        capture_console=False,
        app_name="TestApp",
        app_version="1.2.3",
    )


@pytest.fixture
def store(log_path: Path) -> Generator[RollingLogStore, None, None]:
    """A ready store with no session marker written."""
    log_store = RollingLogStore(
        maximum_size=2048,
        trim_size=512,
        minimum_free_disk_space=0,
    )
    log_store.setup(log_path, start_session=False)
    yield log_store
    log_store.close()
