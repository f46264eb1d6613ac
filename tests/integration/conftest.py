"""
Fixtures for integration tests.

Each test runs the real application, lifespan included, against a fresh
blob directory and SQLite file under pytest's tmp_path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml
from fastapi.testclient import TestClient

from object_store.config import clear_settings_cache
from object_store.core.state import reset_app_state

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

INTEGRATION_TOKEN = "integration-test-token"
MAX_UPLOAD_SIZE_MB = 1


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    """Root of the temporary storage for one test."""
    return tmp_path / "data"


@pytest.fixture
def config_file(tmp_path: Path, storage_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write an integration config and point CONFIG_PATH at it."""
    config = {
        "service": {"name": "object_store", "version": "0.1.0"},
        "storage": {
            "path": str(storage_dir / "objects"),
            "database_path": str(storage_dir / "metadata.db"),
            "max_upload_size_mb": MAX_UPLOAD_SIZE_MB,
            "chunk_size_bytes": 4096,
        },
        "auth": {"token": INTEGRATION_TOKEN},
        "server": {"host": "127.0.0.1", "port": 3000, "cors_origins": ["*"]},
        "logging": {"level": "WARNING", "format": "json"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config))
    monkeypatch.setenv("CONFIG_PATH", str(path))
    return path


@pytest.fixture(autouse=True)
def isolated_process_state() -> Iterator[None]:
    """Drop cached settings and app state around every test."""
    clear_settings_cache()
    reset_app_state()
    yield
    reset_app_state()
    clear_settings_cache()


@pytest.fixture
def client(config_file: Path) -> Iterator[TestClient]:
    """Client for the fully started application."""
    from object_store.app import create_app  # noqa: PLC0415

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header for the integration token."""
    return {"Authorization": f"Bearer {INTEGRATION_TOKEN}"}
