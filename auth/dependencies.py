"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Protected routes authenticate with an "Authorization: Bearer <token>" header.
The header value is split on whitespace and the second part is verified as a
JWT; the scheme word itself is not checked.

require_token() is the hard gate:
  - no Authorization header        -> AuthenticationError, HTTP 403
  - token missing/invalid/expired  -> AuthenticationError, HTTP 401
  - valid token                    -> TokenClaims, also stored on request.state.claims

guard_status_update() applies require_token() to the status-update route only
when Settings.protect_status_route is true.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import TokenClaims
from auth.tokens import decode_access_token
from core.config import get_settings
from core.errors import AuthenticationError

logger = logging.getLogger("taskserver.auth")


def require_token(request: Request) -> TokenClaims:
    """Require a valid bearer token. Raises AuthenticationError otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(require_token)): ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise AuthenticationError("No token provided", status_code=403)

    parts = auth_header.split()
    claims = decode_access_token(parts[1]) if len(parts) > 1 else None
    if claims is None:
        logger.warning("Rejected token on %s %s", request.method, request.url.path)
        raise AuthenticationError("Invalid token")

    request.state.claims = claims
    return claims


def guard_status_update(request: Request) -> TokenClaims | None:
    """Token gate for PATCH /tasks/{id}/status, governed by PROTECT_STATUS_ROUTE."""
    if not get_settings().protect_status_route:
        return None
    return require_token(request)
