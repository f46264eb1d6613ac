"""
Bearer token authentication for the object API.

Operational endpoints (/health, /info) stay open; everything under the
API prefix requires ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import secrets

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from object_store.config import get_settings
from object_store.core.exceptions import ServiceError
from object_store.logging import get_logger

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),  # noqa: B008
) -> None:
    """
    Reject requests that do not carry the configured bearer token.

    Raises:
        ServiceError: 401 when the token is missing or wrong
    """
    logger = get_logger()

    if credentials is None:
        logger.warning("Authentication failed: no token provided")
        raise ServiceError(
            error="unauthorized",
            message="Missing bearer token",
            status_code=401,
            details={},
        )

    expected = get_settings().auth.token
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning("Authentication failed: invalid token")
        raise ServiceError(
            error="unauthorized",
            message="Invalid bearer token",
            status_code=401,
            details={},
        )
