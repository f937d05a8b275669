"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in core/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: auth/ may import from core/ only.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.models import ROLE_ADMIN, ROLE_USER


@dataclass
class User:
    """A registered account.

    hashed_password is None for Google-only users (they have no local
    password). google_id is None until the user signs in with Google for the
    first time, at which point link_google() fills it in.
    """

    name: str
    email: str
    role: str = ROLE_USER  # "USER" | "ADMIN"
    id: int | None = None
    hashed_password: str | None = None  # None = Google-only user
    avatar: str | None = None
    google_id: str | None = None  # Google's stable "sub" claim
    email_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as resolved by auth.policy.authenticate().

    role is read from the user record at authentication time, not from the
    token, so a demotion takes effect on the next request.
    """

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
