"""
Application lifecycle management.

Startup opens the catalog connection, prepares the blob directory and
wires both into the object service. Shutdown closes the connection.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from object_store.config import Settings, get_safe_config, get_settings
from object_store.core.state import init_app_state
from object_store.logging import get_logger, setup_logging
from object_store.services.blob_store import FileBlobStore
from object_store.services.catalog import MetadataCatalog, connect_catalog
from object_store.services.object_service import ObjectService

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import aiosqlite
    from fastapi import FastAPI


async def create_object_service(
    settings: Settings,
    connection: aiosqlite.Connection,
) -> ObjectService:
    """
    Build the storage engine on top of an open catalog connection.

    Args:
        settings: Application settings
        connection: Catalog connection shared for the process lifetime

    Returns:
        Object service with an initialized catalog schema
    """
    catalog = MetadataCatalog(connection)
    await catalog.initialize()

    blob_store = FileBlobStore(
        root_dir=Path(settings.storage.path),
        chunk_size=settings.storage.chunk_size_bytes,
    )

    return ObjectService(
        blob_store=blob_store,
        catalog=catalog,
        max_upload_bytes=settings.storage.max_upload_bytes,
        logger=get_logger(),
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    # === STARTUP ===
    settings = get_settings()

    # Initialize logging first
    setup_logging(settings.logging.level, settings.service.name)
    logger = get_logger()

    state = init_app_state()

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
            "storage_path": settings.storage.path,
            "database_path": settings.storage.database_path,
            "max_upload_size_mb": settings.storage.max_upload_size_mb,
        },
    )
    logger.debug("Effective configuration", extra={"config": get_safe_config()})

    connection = await connect_catalog(settings.storage.database_path)
    state.connection = connection

    try:
        service = await create_object_service(settings, connection)
        state.object_service = service

        object_count, total_size = await service.stats()
        logger.info(
            "Service ready to accept requests",
            extra={"object_count": object_count, "total_size": total_size},
        )

        yield  # Application runs here

        # === SHUTDOWN ===
        logger.info(
            "Service shutting down",
            extra={
                "uptime_seconds": state.uptime_seconds,
                "uptime": state.uptime_formatted,
            },
        )
    finally:
        await connection.close()
        state.connection = None
