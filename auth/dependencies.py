"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token is read from the Authorization header:
    Authorization: Bearer <access token>

try_get_identity() is the soft variant (returns None on failure).
get_identity() raises AUTH_REQUIRED / AUTH_INVALID if unauthenticated.
require_admin() wraps get_identity() and raises FORBIDDEN if not ADMIN.

All three delegate to auth/policy.py and resolve the user store from
request.app.state, so tests swap the store by swapping app.state.

Layer rule: no imports from portfolio/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Identity
from auth.policy import authenticate, authenticate_optional, authorize_role
from core.models import ROLE_ADMIN


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token


def try_get_identity(request: Request) -> Identity | None:
    """Return the caller's Identity, or None for anonymous/invalid callers.

    Never raises -- used by public listings that show more to logged-in users.
    """
    return authenticate_optional(request.app.state.user_store, _bearer_token(request))


def get_identity(request: Request) -> Identity:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_identity)): ...
    """
    return authenticate(request.app.state.user_store, _bearer_token(request))


def require_admin(request: Request) -> Identity:
    """Require the ADMIN role. Raises AUTH_* if unauthenticated, FORBIDDEN if not admin."""
    identity = get_identity(request)
    authorize_role(identity, [ROLE_ADMIN])
    return identity
