"""
Application state management.

Tracks runtime state like uptime, and holds the process-wide storage
handles created during startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite

    from object_store.services.object_service import ObjectService


@dataclass
class AppState:
    """
    Runtime application state.

    Attributes:
        start_time: When the application started (UTC)
        connection: Shared catalog database connection
        _object_service: Storage engine entry point (internal)
    """

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    connection: aiosqlite.Connection | None = field(default=None, repr=False)
    _object_service: ObjectService | None = field(default=None, repr=False)

    @property
    def object_service(self) -> ObjectService:
        """Get the object service. Raises RuntimeError if not initialized."""
        if self._object_service is None:
            raise RuntimeError("Object service not initialized")
        return self._object_service

    @object_service.setter
    def object_service(self, value: ObjectService) -> None:
        """Set the object service."""
        self._object_service = value

    @property
    def is_ready(self) -> bool:
        """True once the storage engine has been wired up."""
        return self._object_service is not None

    @property
    def uptime_seconds(self) -> float:
        """Calculate uptime in seconds."""
        return (datetime.now(UTC) - self.start_time).total_seconds()

    @property
    def uptime_formatted(self) -> str:
        """
        Format uptime as human-readable string.

        Returns:
            String like "2d 3h 15m 42s" or "15m 42s"
        """
        seconds = int(self.uptime_seconds)
        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, secs = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        parts.append(f"{secs}s")

        return " ".join(parts)


# Initialized in lifespan context
_app_state: AppState | None = None


def get_app_state() -> AppState:
    """
    Get the current application state.

    Raises:
        RuntimeError: If called before app startup
    """
    if _app_state is None:
        raise RuntimeError("Application state not initialized")
    return _app_state


def init_app_state() -> AppState:
    """Initialize application state. Called during startup."""
    global _app_state  # noqa: PLW0603 - intentional singleton pattern
    _app_state = AppState()
    return _app_state


def reset_app_state() -> None:
    """Reset application state. Used in testing."""
    global _app_state  # noqa: PLW0603 - intentional singleton pattern
    _app_state = None
