"""
api/routes/v1/auth.py -- Signup, login and protected-resource endpoints.

Routes:
  GET  /csrf-token  -- issue a CSRF request token (sets csrf_secret cookie)
  POST /signup      -- create an account
  POST /login       -- exchange credentials for a bearer token
  GET  /protected   -- requires Authorization: Bearer <token>

Every route except /csrf-token delegates straight to AuthGateway, which runs
the guard chain (rate limit -> CSRF -> [bearer token]) before doing anything
else. Errors are raised as AuthError subclasses and rendered by the handler
in api/main.py. The one exception is the login 401, built here so it can
carry Cache-Control: no-store.

Security:
  Cache-Control: no-store on login responses (success and failure).
  /csrf-token is rate-limited but exempt from CSRF -- it is how a client
  obtains its first token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    CsrfTokenResponse,
    ErrorResponse,
    LoginBody,
    LoginResponse,
    ProtectedResponse,
    SignupBody,
    SignupResponse,
)
from auth.csrf import CSRF_COOKIE_NAME, generate_secret, generate_token
from auth.dependencies import get_gateway, inbound_request
from auth.errors import InvalidCredentials
from auth.gateway import AuthGateway
from auth.models import LoginRequest, ProtectedRequest, SignupRequest
from core.config import get_settings

# Auth policy:
# - GET  /csrf-token:  public, rate-limited, CSRF-exempt
# - POST /signup:      public, rate-limited, CSRF
# - POST /login:       public, rate-limited, CSRF
# - GET  /protected:   rate-limited, CSRF, bearer token
router = APIRouter()


@router.get("/csrf-token", response_model=CsrfTokenResponse)
async def csrf_token(request: Request) -> JSONResponse:
    """Return a request token bound to the caller's CSRF secret.

    Reuses the existing csrf_secret cookie if present so tokens handed out
    earlier in the session stay valid; otherwise starts a new session secret.
    """
    context = inbound_request(request)
    request.app.state.rate_limit_guard.check(context)

    secret = context.csrf_secret or generate_secret()
    resp = JSONResponse(content=CsrfTokenResponse(csrf_token=generate_token(secret)).model_dump())
    if context.csrf_secret is None:
        resp.set_cookie(
            CSRF_COOKIE_NAME,
            value=secret,
            httponly=True,
            samesite="strict",
            secure=get_settings().secure_cookies,
        )
    return resp


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    request: Request,
    body: SignupBody,
    gateway: AuthGateway = Depends(get_gateway),
) -> SignupResponse:
    """Register a new account. The password hash is never echoed back."""
    result = await gateway.signup(
        SignupRequest(
            context=inbound_request(request),
            name=body.name,
            email=body.email,
            password=body.password,
        )
    )
    return SignupResponse(message=result.message, user_id=result.user_id)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    body: LoginBody,
    gateway: AuthGateway = Depends(get_gateway),
) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Unknown email and wrong password produce the same 401 body.
    """
    try:
        result = await gateway.login(
            LoginRequest(context=inbound_request(request), email=body.email, password=body.password)
        )
    except InvalidCredentials as exc:
        resp = JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=exc.message, code=exc.code).model_dump(exclude_none=True),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=result.token,
            token_type=result.token_type,
            expires_in=result.expires_in,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/protected", response_model=ProtectedResponse)
async def protected(
    request: Request,
    gateway: AuthGateway = Depends(get_gateway),
) -> ProtectedResponse:
    """Protected resource -- reachable only with a valid bearer token."""
    result = await gateway.access_protected(ProtectedRequest(context=inbound_request(request)))
    return ProtectedResponse(message=result.message, user_id=result.user_id)
