"""
auth/errors.py -- Error taxonomy for the authentication pipeline.

Every rejection the gateway or a guard can produce is an AuthError subclass.
Each class carries the HTTP status, a stable machine-readable code, and the
client-facing message. The API layer maps them to responses in one exception
handler, so route code never builds error bodies by hand.

InvalidToken and ExpiredToken are internal: TokenGuard collapses both into
Unauthorized before anything reaches the client.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all expected pipeline failures."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = 400
    code = "validation_error"
    message = "Name, email and password are required."


class DuplicateEmail(AuthError):
    status_code = 400
    code = "duplicate_email"
    message = "Email already exists"


class InvalidCredentials(AuthError):
    """Same message for unknown email and wrong password (no enumeration)."""

    status_code = 401
    code = "invalid_credentials"
    message = "Invalid credentials"


class InvalidToken(AuthError):
    status_code = 401
    code = "invalid_token"
    message = "Invalid token"


class ExpiredToken(AuthError):
    status_code = 401
    code = "expired_token"
    message = "Token expired"


class Unauthorized(AuthError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class CsrfMismatch(AuthError):
    status_code = 403
    code = "csrf_mismatch"
    message = "Invalid CSRF token"


class RateLimited(AuthError):
    status_code = 429
    code = "rate_limited"
    message = "Too many requests, please try again later."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = max(int(retry_after), 1)
        super().__init__(message)


class UpstreamTimeout(AuthError):
    """A directory call did not finish in time. Safe to retry."""

    status_code = 503
    code = "upstream_timeout"
    message = "The service is temporarily unavailable, please retry."


class InternalError(AuthError):
    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."
