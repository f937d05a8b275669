"""
auth/google.py -- Google ID token verification for the sign-in endpoint.

The browser completes Google sign-in on its own and POSTs the resulting ID
token to /api/auth/google. This module verifies that token server-side:

  1. Fetch Google's signing keys (JWKS) over HTTPS with requests.
  2. Verify signature, expiry, issuer and audience with authlib.jose.
  3. Require a verified email claim.

Security notes:
  Audience must equal GOOGLE_CLIENT_ID. Without that check a token minted for
  any other Google client would be accepted here.

  Email verification is mandatory. An unverified Google email could belong to
  an attacker who added a victim's address without confirming it, and sign-in
  matches accounts by email.

  The JWKS is cached on the verifier instance and refetched once when a token
  names a key id that is not in the cached set (Google rotates keys).

Layer rule: no imports from api/ or portfolio/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from authlib.jose import JsonWebKey, jwt
from authlib.jose.errors import JoseError

from core.errors import AuthInvalidError, ValidationFailedError

logger = logging.getLogger("portfolio.auth.google")

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ["accounts.google.com", "https://accounts.google.com"]

# Module-level session shared by every verifier for connection pooling.
_session = requests.Session()
_session.max_redirects = 3


@dataclass(frozen=True)
class GoogleProfile:
    """The claims the sign-in flow needs from a verified Google ID token."""

    sub: str
    email: str
    name: str | None = None
    picture: str | None = None


class GoogleTokenVerifier:
    """Verifies Google ID tokens against one OAuth client id.

    Constructed once at startup and held on app.state.google_verifier.
    An empty client_id leaves Google sign-in disabled.
    """

    def __init__(self, client_id: str, certs_url: str = GOOGLE_CERTS_URL) -> None:
        self.client_id = client_id
        self.certs_url = certs_url
        self._key_set = None

    @property
    def enabled(self) -> bool:
        return bool(self.client_id)

    def _fetch_keys(self):
        try:
            resp = _session.get(self.certs_url, timeout=10)
            resp.raise_for_status()
            return JsonWebKey.import_key_set(resp.json())
        except (requests.RequestException, ValueError) as e:
            logger.warning("Could not fetch Google signing keys: %s", e)
            raise AuthInvalidError("Google authentication failed") from e

    def _decode(self, id_token: str, refresh: bool = False):
        if self._key_set is None or refresh:
            self._key_set = self._fetch_keys()
        claims = jwt.decode(
            id_token,
            self._key_set,
            claims_options={
                "iss": {"essential": True, "values": GOOGLE_ISSUERS},
                "aud": {"essential": True, "value": self.client_id},
                "sub": {"essential": True},
            },
        )
        claims.validate()
        return claims

    def verify(self, id_token: str) -> GoogleProfile:
        """Verify an ID token and return the profile it carries.

        Raises:
            ValidationFailedError: Google sign-in is not configured.
            AuthInvalidError:      the token is invalid, expired, issued for
                                   another client, or lacks a verified email.
        """
        if not self.enabled:
            raise ValidationFailedError("Google sign-in is not configured")

        try:
            try:
                claims = self._decode(id_token)
            except ValueError:
                # Unknown key id: Google may have rotated its keys since the last fetch
                claims = self._decode(id_token, refresh=True)
        except (JoseError, ValueError) as e:
            logger.info("Rejected Google ID token: %s", e)
            raise AuthInvalidError("Google authentication failed") from e

        email = claims.get("email")
        if not email:
            raise AuthInvalidError("Google authentication failed")
        if claims.get("email_verified") not in (True, "true"):
            raise AuthInvalidError("Google account email is not verified")

        return GoogleProfile(
            sub=str(claims["sub"]),
            email=email,
            name=claims.get("name"),
            picture=claims.get("picture"),
        )
