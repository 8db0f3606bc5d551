"""Bearer-token guard for the session inspection API.

The /api/sessions routes expose live call transcripts, so they need
``Authorization: Bearer <ADMIN_API_KEY>``. With no key configured the
routes are open only when DEBUG is on; otherwise they refuse every
request with 403 until a key is set.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from housing.config import settings

log = logging.getLogger("housing.auth")

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """Reject callers of the session API that don't present the admin key."""
    expected = settings.admin_api_key

    if not expected:
        if settings.debug:
            return
        log.warning("Session API called but ADMIN_API_KEY is unset")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Session inspection is disabled: no ADMIN_API_KEY configured.",
        )

    presented = credentials.credentials if credentials else ""
    if not secrets.compare_digest(presented.encode(), expected.encode()):
        log.warning("Rejected session API request with a bad bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Bearer token does not match ADMIN_API_KEY.",
            headers={"WWW-Authenticate": "Bearer"},
        )
