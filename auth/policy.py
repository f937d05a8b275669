"""
auth/policy.py -- The authentication and authorization contract.

Four plain functions, applied as a guard before any lifecycle operation:

  authenticate(store, token)           -> Identity or AUTH_REQUIRED / AUTH_INVALID
  authenticate_optional(store, token)  -> Identity or None, never raises
  authorize_role(identity, roles)      -> None or FORBIDDEN
  authorize_ownership(identity, owner) -> None or FORBIDDEN (ADMIN bypasses)

Nothing here knows about HTTP. auth/dependencies.py adapts these to FastAPI
Depends() guards; the CLI and tests call them directly.

Revocation by deletion: a token whose signature and expiry are valid still
fails AUTH_INVALID when the user it names no longer exists. The role on the
returned Identity comes from the stored user, so role changes apply to the
next request rather than at token expiry.

Layer rule: no imports from api/ or portfolio/.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from auth.models import Identity
from auth.tokens import decode_access_token
from core.errors import AuthInvalidError, AuthRequiredError, ForbiddenError

if TYPE_CHECKING:
    from auth.store import UserStore


def authenticate(store: UserStore, bearer_token: str | None) -> Identity:
    """Resolve a bearer token to the calling Identity."""
    if bearer_token is None or not bearer_token.strip():
        raise AuthRequiredError()

    payload = decode_access_token(bearer_token.strip())
    if payload is None:
        raise AuthInvalidError()

    try:
        user_id = int(payload["user_id"])
    except (KeyError, TypeError, ValueError):
        raise AuthInvalidError() from None

    user = store.get_by_id(user_id)
    if user is None:
        raise AuthInvalidError("User no longer exists.")
    return Identity(id=user.id, email=user.email, role=user.role)


def authenticate_optional(store: UserStore, bearer_token: str | None) -> Identity | None:
    """Soft variant of authenticate(): anonymous callers get None."""
    try:
        return authenticate(store, bearer_token)
    except (AuthRequiredError, AuthInvalidError):
        return None


def authorize_role(identity: Identity, allowed_roles: Iterable[str]) -> None:
    if identity.role not in set(allowed_roles):
        raise ForbiddenError()


def authorize_ownership(
    identity: Identity, owner_id: int, message: str = "Not authorized to modify this resource."
) -> None:
    """Allow the owner of a resource, or any ADMIN."""
    if identity.is_admin or identity.id == owner_id:
        return
    raise ForbiddenError(message)
