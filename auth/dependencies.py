"""
auth/dependencies.py -- FastAPI Depends() helpers for the auth pipeline.

inbound_request() translates a Starlette Request into the framework-free
InboundRequest the guard chain inspects:
  client_address -- slowapi's get_remote_address (request.client.host)
  authorization  -- Authorization header, parsed later by TokenGuard
  csrf_token     -- X-CSRF-Token header
  csrf_secret    -- csrf_secret cookie

get_gateway() hands route handlers the AuthGateway built in the lifespan.

Layer rule: auth/dependencies.py may import from fastapi and slowapi because
this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request
from slowapi.util import get_remote_address

from auth.csrf import CSRF_COOKIE_NAME, CSRF_HEADER_NAME
from auth.gateway import AuthGateway
from auth.models import InboundRequest


def inbound_request(request: Request) -> InboundRequest:
    """Build the guard chain's view of this request."""
    return InboundRequest(
        client_address=get_remote_address(request),
        method=request.method,
        path=request.url.path,
        authorization=request.headers.get("Authorization"),
        csrf_token=request.headers.get(CSRF_HEADER_NAME),
        csrf_secret=request.cookies.get(CSRF_COOKIE_NAME),
    )


def get_gateway(request: Request) -> AuthGateway:
    """Return the application's AuthGateway.

    Use as a FastAPI dependency:
        @router.post("/signup")
        async def route(gateway: AuthGateway = Depends(get_gateway)): ...
    """
    return request.app.state.gateway
