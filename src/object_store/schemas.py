"""
Pydantic request/response models for the object store API.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from object_store.services.catalog import ObjectRecord


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "unhealthy"]
    """Service health status."""

    uptime_seconds: float
    """Uptime in seconds since service start."""

    uptime: str
    """Human-readable uptime."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""


class StorageInfo(BaseModel):
    """Storage configuration and usage for /info endpoint."""

    model_config = ConfigDict(extra="forbid")

    path: str
    """Blob store base directory."""

    database_path: str
    """Metadata catalog database file."""

    max_upload_size_mb: int
    """Upload size cap in megabytes."""

    object_count: int
    """Number of objects in the catalog."""

    total_size: int
    """Sum of object sizes in bytes."""


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    """Service name."""

    version: str
    """Service version."""

    storage: StorageInfo
    """Storage configuration and status."""


class ObjectMetadata(BaseModel):
    """Catalog record of a stored object."""

    model_config = ConfigDict(extra="forbid")

    id: str
    key: str
    size: int
    content_type: str
    etag: str
    """SHA-256 hex digest of the object bytes."""

    created_at: datetime

    @classmethod
    def from_record(cls, record: ObjectRecord) -> ObjectMetadata:
        """Convert a catalog record into its API representation."""
        return cls(
            id=record.id,
            key=record.key,
            size=record.size,
            content_type=record.content_type,
            etag=record.etag,
            created_at=record.created_at,
        )


class ListObjectsResponse(BaseModel):
    """Response model for GET /api/v1/objects."""

    objects: list[ObjectMetadata]
    """Leaf objects directly under the prefix."""

    total: int
    """Number of leaf objects."""

    prefixes: list[str]
    """Virtual folders under the prefix, sorted."""


class SearchResponse(BaseModel):
    """Response model for GET /api/v1/search."""

    objects: list[ObjectMetadata]
    total: int


class ObjectInfoResponse(BaseModel):
    """Response model for GET /api/v1/info/{key}."""

    metadata: ObjectMetadata
    path: str
    """Location of the blob on the server filesystem."""


class StatsResponse(BaseModel):
    """Response model for GET /api/v1/stats."""

    total_objects: int
    total_size: int
    storage_path: str


class DeleteResponse(BaseModel):
    """Response model for DELETE /api/v1/objects/{key}."""

    success: bool


class DeleteFolderResponse(BaseModel):
    """Response model for DELETE /api/v1/folders/{prefix}."""

    success: bool
    deleted: int
    """Number of catalog records removed."""


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    """Machine-readable error code."""

    message: str
    """Human-readable error description."""

    details: dict[str, Any]
    """Additional error context."""
