"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in api/main.py (to mount as middleware) and in the route modules
(to apply the stricter per-route limit with @limiter.limit(), placed below
the @router decorator).

Using a single shared instance ensures all routes share the same in-memory
counter store. If this were instantiated in each module separately, each
module would get its own isolated counter and rate limits would never trigger.

Fixed window per client address:
  default_limits  -- every route (100 per 15 minutes unless configured)
  auth_limit      -- login, register and Google sign-in (10 per minute)

RATE_LIMIT_ENABLED=false turns the limiter off (the test suite does this).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

auth_limit = _settings.auth_rate_limit

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.default_rate_limit],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=_settings.rate_limit_enabled,
)
