"""
api/main.py -- FastAPI application entry point for AuthGate.

Run with:      uvicorn asgi:app --reload
               python main.py

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one log line per request with latency

Rate limiting, CSRF and bearer-token checks are NOT middleware: they are the
guard chain owned by AuthGateway, so every gateway operation runs them in a
fixed order before any other work.

Lifespan builds every service once (store, hasher, token service, limiter,
guards, gateway) and stores it on app.state; shutdown closes the store.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import build_limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.csrf import CSRF_HEADER_NAME
from auth.errors import AuthError, RateLimited
from auth.gateway import AuthGateway
from auth.guards import CsrfGuard, GuardChain, RateLimitGuard
from auth.hasher import CredentialHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------


def init_services(app: FastAPI, settings: Settings, store: UserStore) -> None:
    """Build the auth pipeline around store and attach it to app.state.

    Order matters: the guard chain needs the limiter, the gateway needs the
    chain. Only the guard holds the limiter; /csrf-token reuses that guard.
    """
    limiter = build_limiter()
    rate_limit_guard = RateLimitGuard(limiter, settings.rate_limit)
    tokens = TokenService(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
    guards = GuardChain([rate_limit_guard, CsrfGuard()])

    app.state.rate_limit_guard = rate_limit_guard
    app.state.user_store = store
    app.state.gateway = AuthGateway(
        store=store,
        hasher=CredentialHasher(rounds=settings.bcrypt_rounds),
        tokens=tokens,
        guards=guards,
        upstream_timeout=settings.upstream_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime."""
    logger.info("AuthGate API starting up")
    settings = get_settings()
    store = UserStore(settings.database_url, timeout=settings.upstream_timeout_seconds)
    init_services(app, settings, store)
    logger.info("Auth initialized (%d users, rate limit %s)", store.count_users(), settings.rate_limit)

    yield

    store.close()
    logger.info("AuthGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AuthGate API",
    description="User signup, login and bearer-token protected access.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", CSRF_HEADER_NAME],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse body ({message, code}) so clients
# can parse errors uniformly.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an expected pipeline rejection with its own status and message.

    RateLimited also carries Retry-After so clients know when to come back.
    """
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path)
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message, code=exc.code).model_dump(exclude_none=True),
    )
    if isinstance(exc, RateLimited):
        response.headers["Retry-After"] = str(exc.retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with structured error when the request body fails validation."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            message="Request validation failed.",
            code="validation_error",
            detail=str(exc.errors()),
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for FastAPI/Starlette HTTP exceptions (404, 405, ...)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail), code=f"http_{exc.status_code}").model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="An unexpected error occurred.", code="internal_error").model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py and kept outside the guard chain: load balancer
# probes must not be throttled or asked for CSRF tokens.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    database = "ok"
    try:
        await asyncio.to_thread(request.app.state.user_store.ping)
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
