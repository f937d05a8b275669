"""
core/config.py -- Portfolio API settings, read once from the environment.

Every knob the service has lives on Settings: database location, JWT keys
and lifetimes, the CORS client origin, Google sign-in, rate limits and the
PDF timeout. Other modules call get_settings(); nothing else reads os.environ.

How values resolve:
  Each field maps to the upper-cased env var of the same name (DATABASE_URL,
  CLIENT_URL, ...), then to a .env file in the working directory, then to
  the default declared below. Unknown variables are ignored.

  get_settings() is wrapped in lru_cache, so the first call fixes the
  configuration for the life of the process. api/limiter.py and api/main.py
  call it at import time.

Signing keys:
  SECRET_KEY signs access tokens, REFRESH_SECRET_KEY signs refresh tokens.
  Each must be at least 32 characters. With DEBUG=true a missing key is
  replaced by a random one (logged); otherwise startup fails.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or portfolio/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("portfolio.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'portfolio.db'}"


class Settings(BaseSettings):
    """Portfolio API configuration. Every field has a default; only the two
    signing keys are mandatory outside DEBUG mode."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    environment: str = "production"
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator below
    # either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    refresh_secret_key: str = ""
    access_token_expire_seconds: int = 3600
    refresh_token_expire_seconds: int = 7 * 24 * 3600

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    client_url: str = "http://localhost:3000"
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Google sign-in (empty string means disabled)
    # ------------------------------------------------------------------

    google_client_id: str = ""

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    default_rate_limit: str = "100/15minutes"
    auth_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # PDF export
    # ------------------------------------------------------------------

    pdf_timeout_ms: int = 30000

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_keys(self) -> "Settings":
        """Enforce the signing key policy for both JWT keys.

        Dev mode (DEBUG=true): auto-generate random keys with a warning.
            Tokens will not survive a restart -- acceptable for local dev.

        Production mode: refuse to start if either key is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        for name in ("secret_key", "refresh_secret_key"):
            value = getattr(self, name)
            if not value:
                if self.debug:
                    value = secrets.token_hex(32)
                    setattr(self, name, value)
                    logger.warning("Using auto-generated %s. Tokens will not persist across restarts.", name.upper())
                else:
                    raise ValueError(f"{name.upper()} must be set unless DEBUG=true.")
            if len(value) < 32:
                raise ValueError(f"{name.upper()} must be at least 32 characters.")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production" and not self.debug


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings (built on first call)."""
    return Settings()
