"""API routers for the object store."""

from object_store.routers import health, info, objects, stats

__all__ = ["health", "info", "objects", "stats"]
