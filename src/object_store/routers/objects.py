"""
Object storage endpoints.

Provides PUT/GET/HEAD/DELETE for objects, delimiter-grouped listing,
metadata search, and folder deletion.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from object_store.core.exceptions import ServiceError, storage_error_to_service_error
from object_store.core.state import get_app_state
from object_store.logging import get_logger
from object_store.schemas import (
    DeleteFolderResponse,
    DeleteResponse,
    ListObjectsResponse,
    ObjectInfoResponse,
    ObjectMetadata,
    SearchResponse,
)
from object_store.services.errors import ObjectStoreError
from object_store.services.object_service import DEFAULT_CONTENT_TYPE, ObjectService

router = APIRouter()


def _validate_key(key: str) -> None:
    """Reject empty object keys. Raises ServiceError on invalid key."""
    if not key:
        raise ServiceError(
            error="invalid_key",
            message="Object key must not be empty",
            status_code=400,
            details={"key": key},
        )


def _get_object_service() -> ObjectService:
    """Get initialized object service or raise a service error."""
    state = get_app_state()
    if not state.is_ready:
        raise ServiceError(
            error="service_unavailable",
            message="Object service is not initialized",
            status_code=503,
            details={},
        )
    return state.object_service


def _object_headers(metadata: ObjectMetadata) -> dict[str, str]:
    """Headers that let a client validate a complete transfer."""
    return {
        "content-type": metadata.content_type,
        "content-length": str(metadata.size),
        "etag": metadata.etag,
    }


@router.put("/objects/{key:path}", response_model=ObjectMetadata)
async def put_object(key: str, request: Request) -> ObjectMetadata:
    """Store an object from the streamed request body."""
    _validate_key(key)
    service = _get_object_service()
    content_type = request.headers.get("content-type") or DEFAULT_CONTENT_TYPE

    try:
        record = await service.put(key, request.stream(), content_type)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return ObjectMetadata.from_record(record)


@router.get("/objects/{key:path}")
async def get_object(key: str) -> StreamingResponse:
    """Stream an object's bytes with its size and etag headers."""
    _validate_key(key)
    service = _get_object_service()

    try:
        record, reader = await service.get(key)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    get_logger().info("Object streaming started", extra={"key": key, "size": record.size})

    return StreamingResponse(
        reader,
        headers=_object_headers(ObjectMetadata.from_record(record)),
        background=BackgroundTask(reader.aclose),
    )


@router.head("/objects/{key:path}")
async def head_object(key: str) -> Response:
    """Return an object's headers without its body."""
    _validate_key(key)
    service = _get_object_service()

    try:
        record = await service.head(key)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return Response(
        status_code=200,
        headers=_object_headers(ObjectMetadata.from_record(record)),
    )


@router.delete("/objects/{key:path}", response_model=DeleteResponse)
async def delete_object(key: str) -> DeleteResponse:
    """Delete a single object."""
    _validate_key(key)
    service = _get_object_service()

    try:
        await service.delete(key)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return DeleteResponse(success=True)


@router.get("/objects", response_model=ListObjectsResponse)
async def list_objects(
    prefix: str | None = Query(default=None, description="Key prefix to list under"),
    limit: int | None = Query(default=None, ge=1, description="Maximum keys scanned"),
    delimiter: str | None = Query(default=None, min_length=1, description="Folder delimiter"),
) -> ListObjectsResponse:
    """List objects and virtual folders directly under a prefix."""
    service = _get_object_service()

    try:
        listing = await service.list_objects(prefix=prefix, limit=limit, delimiter=delimiter)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    get_logger().info(
        "Listed objects",
        extra={"prefix": prefix, "total": listing.total, "folders": len(listing.prefixes)},
    )

    return ListObjectsResponse(
        objects=[ObjectMetadata.from_record(record) for record in listing.objects],
        total=listing.total,
        prefixes=listing.prefixes,
    )


@router.get("/metadata/{key:path}", response_model=ObjectMetadata)
async def get_object_metadata(key: str) -> ObjectMetadata:
    """Return an object's catalog record as JSON."""
    _validate_key(key)
    service = _get_object_service()

    try:
        record = await service.head(key)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return ObjectMetadata.from_record(record)


@router.get("/info/{key:path}", response_model=ObjectInfoResponse)
async def get_object_info(key: str) -> ObjectInfoResponse:
    """Return an object's catalog record and blob location."""
    _validate_key(key)
    service = _get_object_service()

    try:
        record, path = await service.info(key)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return ObjectInfoResponse(metadata=ObjectMetadata.from_record(record), path=str(path))


@router.delete("/folders/{prefix:path}", response_model=DeleteFolderResponse)
async def delete_folder(prefix: str) -> DeleteFolderResponse:
    """Delete every object under a folder prefix."""
    if not prefix:
        raise ServiceError(
            error="invalid_prefix",
            message="Folder prefix must not be empty",
            status_code=400,
            details={"prefix": prefix},
        )
    service = _get_object_service()

    try:
        deleted = await service.delete_folder(prefix)
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    return DeleteFolderResponse(success=True, deleted=deleted)


@router.get("/search", response_model=SearchResponse)
async def search_objects(
    key: str | None = Query(default=None, description="Substring the key must contain"),
    content_type: str | None = Query(default=None, description="Exact content type"),
    min_size: int | None = Query(default=None, ge=0, description="Inclusive minimum size"),
    max_size: int | None = Query(default=None, ge=0, description="Inclusive maximum size"),
    limit: int | None = Query(default=None, ge=1, description="Maximum results"),
) -> SearchResponse:
    """Search object metadata; every supplied filter must match."""
    service = _get_object_service()

    try:
        records = await service.search(
            key=key,
            content_type=content_type,
            min_size=min_size,
            max_size=max_size,
            limit=limit,
        )
    except ObjectStoreError as e:
        raise storage_error_to_service_error(e) from e

    get_logger().info(
        "Searched objects",
        extra={
            "key_filter": key,
            "content_type": content_type,
            "min_size": min_size,
            "max_size": max_size,
            "total": len(records),
        },
    )

    return SearchResponse(
        objects=[ObjectMetadata.from_record(record) for record in records],
        total=len(records),
    )
