"""Core infrastructure components."""

from object_store.core.exceptions import ServiceError
from object_store.core.state import AppState, get_app_state, init_app_state

__all__ = ["AppState", "ServiceError", "get_app_state", "init_app_state"]
