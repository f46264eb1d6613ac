"""Storage engine: blob store, metadata catalog and the object service."""

from object_store.services.blob_store import BlobReader, FileBlobStore
from object_store.services.catalog import MetadataCatalog, ObjectRecord, connect_catalog
from object_store.services.errors import (
    ObjectNotFoundError,
    ObjectStoreError,
    PayloadTooLargeError,
    StorageFailureError,
)
from object_store.services.object_service import ObjectListing, ObjectService

__all__ = [
    "BlobReader",
    "FileBlobStore",
    "MetadataCatalog",
    "ObjectListing",
    "ObjectNotFoundError",
    "ObjectRecord",
    "ObjectService",
    "ObjectStoreError",
    "PayloadTooLargeError",
    "StorageFailureError",
    "connect_catalog",
]
