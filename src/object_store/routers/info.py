"""
Service information endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

from object_store.config import get_settings
from object_store.core.exceptions import ServiceError, storage_error_to_service_error
from object_store.core.state import get_app_state
from object_store.schemas import InfoResponse, StorageInfo
from object_store.services.errors import ObjectStoreError

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """Get service information, storage configuration and usage."""
    settings = get_settings()
    state = get_app_state()
    if not state.is_ready:
        raise ServiceError(
            error="service_unavailable",
            message="Object service is not initialized",
            status_code=503,
            details={},
        )

    try:
        object_count, total_size = await state.object_service.stats()
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    storage_info = StorageInfo(
        path=settings.storage.path,
        database_path=settings.storage.database_path,
        max_upload_size_mb=settings.storage.max_upload_size_mb,
        object_count=object_count,
        total_size=total_size,
    )

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        storage=storage_info,
    )
