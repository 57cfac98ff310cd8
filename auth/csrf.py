"""
auth/csrf.py -- Cross-site request forgery tokens.

Scheme (cookie-held secret, HMAC-bound request token):
  Each browser session gets a random secret in an httpOnly cookie
  (csrf_secret). Pages fetch a request token from GET /csrf-token and echo it
  back in the X-CSRF-Token header. A token is "<salt>.<hmac>" where hmac is
  HMAC-SHA256(secret, salt), so many distinct tokens are valid for one secret
  and a third-party site that can neither read the cookie nor the token
  cannot forge a match.

  The secret never leaves the cookie; the server keeps no CSRF state.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

CSRF_COOKIE_NAME = "csrf_secret"
CSRF_HEADER_NAME = "X-CSRF-Token"


def generate_secret() -> str:
    """Return a new per-session secret (256 bits, URL-safe)."""
    return secrets.token_urlsafe(32)


def _sign(secret: str, salt: str) -> str:
    return hmac.new(secret.encode(), salt.encode(), hashlib.sha256).hexdigest()


def generate_token(secret: str) -> str:
    """Derive a fresh request token bound to secret."""
    salt = secrets.token_urlsafe(8)
    return f"{salt}.{_sign(secret, salt)}"


def verify_token(secret: str | None, token: str | None) -> bool:
    """Return True iff token was derived from secret. Constant-time compare."""
    if not secret or not token:
        return False
    salt, sep, signature = token.partition(".")
    if not sep or not salt or not signature:
        return False
    return hmac.compare_digest(_sign(secret, salt), signature)
