"""Custom exception handlers for consistent error responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi.responses import JSONResponse

from object_store.logging import get_logger
from object_store.services.errors import (
    ObjectNotFoundError,
    ObjectStoreError,
    PayloadTooLargeError,
    StorageFailureError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from fastapi import FastAPI, Request
    from starlette.requests import Request as StarletteRequest

    ExceptionHandler = Callable[
        [StarletteRequest, Exception],
        Coroutine[Any, Any, JSONResponse],
    ]

__all__ = [
    "ServiceError",
    "register_exception_handlers",
    "service_error_handler",
    "storage_error_to_service_error",
    "unhandled_exception_handler",
]


class ServiceError(Exception):
    """
    Base exception for service errors.

    Attributes:
        error: Machine-readable error code
        message: Human-readable description
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, object] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


def storage_error_to_service_error(exc: ObjectStoreError) -> ServiceError:
    """
    Map a storage engine error onto its HTTP representation.

    Storage failures are logged with their cause but reported generically,
    so filesystem paths and database messages never reach the client.
    """
    if isinstance(exc, ObjectNotFoundError):
        return ServiceError(
            error="not_found",
            message=f"Object not found: {exc.key}",
            status_code=404,
            details={"key": exc.key},
        )
    if isinstance(exc, PayloadTooLargeError):
        return ServiceError(
            error="payload_too_large",
            message=f"Payload exceeds maximum allowed size: {exc.limit} bytes",
            status_code=413,
            details={"limit_bytes": exc.limit},
        )

    extra: dict[str, object] = {"exception_type": exc.__class__.__name__}
    if isinstance(exc, StorageFailureError):
        extra.update(operation=exc.operation, reason=exc.reason)
    get_logger().error("Storage failure", extra=extra)

    return ServiceError(
        error="storage_failure",
        message="The storage backend failed to complete the request",
        status_code=500,
        details={},
    )


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """Handle ServiceError exceptions."""
    logger = get_logger()
    logger.warning(
        "Service error",
        extra={
            "error_code": exc.error,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def unhandled_exception_handler(
    request: Request,
    _exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger = get_logger()
    logger.exception(
        "Unhandled exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""
    app.add_exception_handler(ServiceError, cast("ExceptionHandler", service_error_handler))
    app.add_exception_handler(Exception, unhandled_exception_handler)
