"""
FastAPI application factory.
"""

from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from object_store.config import get_settings
from object_store.core.auth import require_bearer_token
from object_store.core.exceptions import register_exception_handlers
from object_store.core.lifespan import lifespan
from object_store.routers import health, info, objects, stats

API_PREFIX = "/api/v1"


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance with all routers registered
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.service.name} Service",
        description="Single-node object store with a SQLite metadata catalog",
        version=settings.service.version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["ETag", "Content-Length"],
    )

    register_exception_handlers(app)

    protected = [Depends(require_bearer_token)]

    app.include_router(health.router, tags=["Operations"])
    app.include_router(info.router, tags=["Operations"])
    app.include_router(objects.router, prefix=API_PREFIX, tags=["Objects"], dependencies=protected)
    app.include_router(stats.router, prefix=API_PREFIX, tags=["Objects"], dependencies=protected)

    return app
