"""
Fixtures for router unit tests.

The app is built against a temporary config file with the lifespan
patched out; routers see an AppState wired to a mocked ObjectService.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
import yaml
from fastapi.testclient import TestClient

from object_store.core.state import AppState
from object_store.services.object_service import ObjectService

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

TEST_TOKEN = "unit-test-token"

STATE_CONSUMERS = [
    "object_store.routers.health.get_app_state",
    "object_store.routers.info.get_app_state",
    "object_store.routers.objects.get_app_state",
    "object_store.routers.stats.get_app_state",
]


def build_test_config(tmp_path: Path) -> dict:
    """Complete configuration pointing storage at a temporary directory."""
    return {
        "service": {"name": "object_store", "version": "0.1.0"},
        "storage": {
            "path": str(tmp_path / "objects"),
            "database_path": str(tmp_path / "metadata.db"),
            "max_upload_size_mb": 1,
            "chunk_size_bytes": 1024,
        },
        "auth": {"token": TEST_TOKEN},
        "server": {"host": "127.0.0.1", "port": 3000, "cors_origins": ["*"]},
        "logging": {"level": "INFO", "format": "json"},
    }


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a test config and point CONFIG_PATH at it."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(build_test_config(tmp_path)))
    monkeypatch.setenv("CONFIG_PATH", str(path))
    return path


@pytest.fixture
def mock_service() -> MagicMock:
    """ObjectService double whose async methods are AsyncMocks."""
    return MagicMock(spec=ObjectService)


@pytest.fixture
def app_state(mock_service: MagicMock) -> AppState:
    """Application state with the mocked service installed."""
    state = AppState()
    state.object_service = mock_service
    return state


@pytest.fixture
def client(config_file: Path, app_state: AppState) -> Iterator[TestClient]:
    """Test client without lifespan, routed to the mocked state."""
    patches = [patch(target, return_value=app_state) for target in STATE_CONSUMERS]
    patches.append(patch("object_store.app.lifespan"))

    for p in patches:
        p.start()
    try:
        from object_store.app import create_app  # noqa: PLC0415

        yield TestClient(create_app(), raise_server_exceptions=False)
    finally:
        for p in reversed(patches):
            p.stop()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header carrying the configured token."""
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
