"""
API request and response models for AuthGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields default to "" rather than being required: a missing field is
reported by the gateway as a validation_error *after* the guard chain has run,
so an unauthenticated or forged request is always refused by its guard first.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupBody(BaseModel):
    """Request body for POST /signup."""

    name: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)] = ""
    email: Annotated[str, StringConstraints(strip_whitespace=True, max_length=320)] = ""
    # Taken verbatim: surrounding spaces are part of the secret. The gateway
    # enforces bcrypt's 72-byte cap; this only bounds the body size.
    password: str = Field(default="", max_length=1024)


class LoginBody(BaseModel):
    """Request body for POST /login."""

    email: Annotated[str, StringConstraints(strip_whitespace=True, max_length=320)] = ""
    password: str = Field(default="", max_length=1024)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SignupResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user_id: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- OAuth token type, not a password
    expires_in: int


class ProtectedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user_id: str


class CsrfTokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    csrf_token: str


class ErrorResponse(BaseModel):
    """Error body returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
