"""
auth/tokens.py -- JWT and password hashing utilities (the token issuer).

Two concerns live here:
  JWT: python-jose with HS256. Two token kinds share one payload shape
       ({sub, user_id, email, role, type, exp}):
         access  -- signed with SECRET_KEY, short-lived (1h default)
         refresh -- signed with REFRESH_SECRET_KEY, long-lived (7d default)
       The "type" claim is checked on decode so a refresh token can never be
       presented as an access token even if both keys were the same.
       Verification returns None on any failure -- the policy layer turns
       that into AUTH_INVALID.

  Passwords: bcrypt directly. Bcrypt is the right choice for low-entropy
       secrets because its cost factor makes brute force expensive. The
       _DUMMY_HASH constant enables timing equalization in authenticate_user()
       so response time does not reveal whether an email is registered.

  Keys: sourced from core.config.get_settings(), which validates them at
       startup (auto-generated in DEBUG, mandatory in production, >= 32 chars).

Layer rule: no imports from api/ or portfolio/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("portfolio.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API caps passwords at 100
    characters, so multi-byte input is encoded and truncated here explicitly
    rather than letting bcrypt 4.x raise on over-long input.
    """
    return bcrypt.hashpw(plain.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Timing equalization dummy hash.
# Hashed at import; compared against when the email is unknown or has no password.
_DUMMY_HASH: str = hash_password("portfolio_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def _encode(user_id: int, email: str, role: str, kind: str, key: str, seconds: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=seconds)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "role": role,
        "type": kind,
        "exp": expire,
    }
    return jwt.encode(payload, key, algorithm=_ALGORITHM)


def create_access_token(user_id: int, email: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed access JWT.

    Args:
        expire_seconds: Lifetime in seconds. 0 (default) uses
                        Settings.access_token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.access_token_expire_seconds
    return _encode(user_id, email, role, ACCESS, _settings.secret_key, duration)


def create_refresh_token(user_id: int, email: str, role: str, expire_seconds: int = 0) -> str:
    """Encode a signed refresh JWT (separate signing key)."""
    duration = expire_seconds if expire_seconds > 0 else _settings.refresh_token_expire_seconds
    return _encode(user_id, email, role, REFRESH, _settings.refresh_secret_key, duration)


def issue_token_pair(user: User) -> dict[str, str]:
    """Return {"access_token", "refresh_token"} for a user record."""
    return {
        "access_token": create_access_token(user.id, user.email, user.role),
        "refresh_token": create_refresh_token(user.id, user.email, user.role),
    }


def _decode(token: str, key: str, kind: str) -> dict | None:
    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != kind or "user_id" not in payload or "role" not in payload:
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    """Decode and verify an access JWT. Returns the payload dict or None on any failure."""
    return _decode(token, _settings.secret_key, ACCESS)


def decode_refresh_token(token: str) -> dict | None:
    """Decode and verify a refresh JWT. Returns the payload dict or None on any failure."""
    return _decode(token, _settings.refresh_secret_key, REFRESH)


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate a local email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email or Google-only account: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
