"""Domain errors raised by the blob store, catalog and object service."""

from __future__ import annotations


class ObjectStoreError(Exception):
    """Base exception for storage engine operations."""

    pass


class ObjectNotFoundError(ObjectStoreError):
    """Raised when no live object exists for a key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class PayloadTooLargeError(ObjectStoreError):
    """Raised when an upload stream exceeds the configured size cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Payload exceeds maximum allowed size: {limit} bytes")


class StorageFailureError(ObjectStoreError):
    """Raised when the filesystem or the catalog database fails for a reason other than absence."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason}")
