"""
Shared fixtures for unit tests.

Storage fixtures use a temporary directory for blobs and an in-memory
SQLite database for the catalog, so every test starts from empty state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from object_store.config import clear_settings_cache
from object_store.services.blob_store import FileBlobStore
from object_store.services.catalog import MetadataCatalog, connect_catalog
from object_store.services.object_service import ObjectService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator
    from pathlib import Path

TEST_MAX_UPLOAD_BYTES = 64
LARGE_MAX_UPLOAD_BYTES = 1024 * 1024


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    """
    Ensure settings cache is cleared before and after each test.

    This prevents test pollution where one test's configuration
    affects another test's behavior.
    """
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def blob_store(tmp_path: Path) -> FileBlobStore:
    """Blob store rooted in a fresh temporary directory with tiny read chunks."""
    return FileBlobStore(root_dir=tmp_path / "objects", chunk_size=4)


@pytest.fixture
async def catalog() -> AsyncIterator[MetadataCatalog]:
    """Initialized catalog backed by an in-memory database."""
    connection = await connect_catalog(":memory:")
    catalog = MetadataCatalog(connection)
    await catalog.initialize()
    yield catalog
    await connection.close()


@pytest.fixture
def object_service(blob_store: FileBlobStore, catalog: MetadataCatalog) -> ObjectService:
    """Object service over the temporary blob store and in-memory catalog."""
    return ObjectService(
        blob_store=blob_store,
        catalog=catalog,
        max_upload_bytes=TEST_MAX_UPLOAD_BYTES,
    )


@pytest.fixture
def large_object_service(blob_store: FileBlobStore, catalog: MetadataCatalog) -> ObjectService:
    """Object service with a cap large enough for multi-chunk uploads."""
    return ObjectService(
        blob_store=blob_store,
        catalog=catalog,
        max_upload_bytes=LARGE_MAX_UPLOAD_BYTES,
    )
