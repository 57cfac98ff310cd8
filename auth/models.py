"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, guards and gateway do the work.

InboundRequest is the transport-neutral view of an HTTP request that the guard
chain inspects. The API layer builds one per request from the Starlette
Request, so nothing below the API layer touches framework objects.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    email is always stored normalized (trimmed, lowercased) -- the store does
    the normalization, callers may pass any casing.
    hashed_password is the bcrypt hash; the raw password is never kept.
    """

    id: str
    name: str
    email: str
    hashed_password: str
    created_at: str | None = None


@dataclass
class InboundRequest:
    """What the guards need to know about one request.

    subject_id starts as None and is filled in by TokenGuard once the bearer
    token has been verified.
    """

    client_address: str
    method: str = "GET"
    path: str = "/"
    authorization: str | None = None  # raw Authorization header
    csrf_token: str | None = None  # X-CSRF-Token header
    csrf_secret: str | None = None  # csrf_secret cookie
    subject_id: str | None = None


# ---------------------------------------------------------------------------
# Per-operation requests
# ---------------------------------------------------------------------------


@dataclass
class SignupRequest:
    context: InboundRequest
    name: str
    email: str
    password: str


@dataclass
class LoginRequest:
    context: InboundRequest
    email: str
    password: str


@dataclass
class ProtectedRequest:
    context: InboundRequest


# ---------------------------------------------------------------------------
# Per-operation results
# ---------------------------------------------------------------------------


@dataclass
class SignupResult:
    message: str
    user_id: str


@dataclass
class LoginResult:
    token: str
    expires_in: int
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- token type, not a password


@dataclass
class ProtectedResult:
    message: str
    user_id: str
