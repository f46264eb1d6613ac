"""
Health check endpoint.

Provides service health status for container orchestration
(Docker and Kubernetes health checks).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter

from object_store.core.state import get_app_state
from object_store.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check service health.

    Returns "healthy" once the blob store and catalog are wired up,
    "unhealthy" otherwise.
    """
    state = get_app_state()

    # System time in yyyy-mm-dd hh:mm format
    system_time = datetime.now(UTC).strftime("%Y-%m-%d %H:%M")

    status: Literal["healthy", "unhealthy"] = "healthy" if state.is_ready else "unhealthy"

    return HealthResponse(
        status=status,
        uptime_seconds=state.uptime_seconds,
        uptime=state.uptime_formatted,
        system_time=system_time,
    )
