"""
Storage statistics endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

from object_store.config import get_settings
from object_store.core.exceptions import ServiceError, storage_error_to_service_error
from object_store.core.state import get_app_state
from object_store.schemas import StatsResponse
from object_store.services.errors import ObjectStoreError

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def get_stats() -> StatsResponse:
    """Return object count and total stored bytes."""
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
        total_objects, total_size = await state.object_service.stats()
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return StatsResponse(
        total_objects=total_objects,
        total_size=total_size,
        storage_path=settings.storage.path,
    )
