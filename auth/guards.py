"""
auth/guards.py -- Ordered request guard chain.

Every request the gateway handles passes through an explicit list of guards
before any operation logic runs:

  1. RateLimitGuard -- per client address, fixed window (100 per 15 minutes)
  2. CsrfGuard      -- cookie secret + X-CSRF-Token header must match
  3. TokenGuard     -- bearer token, protected operations only

Each guard exposes check(request). Passing means returning normally;
rejecting means raising an AuthError subclass. GuardChain runs guards in the
declared order and the first rejection propagates, so later guards never see
a request an earlier guard refused.

Rate limit counters live in the slowapi Limiter's storage (limits
MemoryStorage by default). Its increment-and-check runs under a per-key lock,
so concurrent requests from one address cannot under-count and different
addresses do not contend.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import math
import time

from limits import RateLimitItem, parse
from slowapi import Limiter

from auth.csrf import verify_token
from auth.errors import AuthError, CsrfMismatch, RateLimited, Unauthorized
from auth.models import InboundRequest
from auth.tokens import TokenService

logger = logging.getLogger("authgate.auth.guards")

DEFAULT_RATE_LIMIT = "100/15 minutes"


class Guard:
    """A single check in the chain. Subclasses override check()."""

    name = "guard"

    def check(self, request: InboundRequest) -> None:
        raise NotImplementedError


class RateLimitGuard(Guard):
    """Reject a client address once it exceeds the window's request cap."""

    name = "rate_limit"

    def __init__(self, limiter: Limiter, limit: str = DEFAULT_RATE_LIMIT) -> None:
        self._limiter = limiter
        self._item: RateLimitItem = parse(limit)

    def check(self, request: InboundRequest) -> None:
        strategy = self._limiter.limiter
        key = request.client_address
        if strategy.hit(self._item, "authgate", key):
            return
        reset_time, _remaining = strategy.get_window_stats(self._item, "authgate", key)
        retry_after = math.ceil(reset_time - time.time())
        logger.warning("Rate limit exceeded for %s (retry in %ds)", key, retry_after)
        raise RateLimited(retry_after=retry_after)


class CsrfGuard(Guard):
    """Require a request token derived from the session's CSRF secret.

    Applied to every request that goes through the chain, GET included.
    """

    name = "csrf"

    def check(self, request: InboundRequest) -> None:
        if not verify_token(request.csrf_secret, request.csrf_token):
            logger.warning("CSRF check failed for %s %s from %s", request.method, request.path, request.client_address)
            raise CsrfMismatch()


class TokenGuard(Guard):
    """Resolve the bearer token to a subject id, or reject with 401.

    Missing, malformed, tampered and expired tokens all surface as the same
    Unauthorized error. The specific reason is logged at DEBUG only.
    """

    name = "token"

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens

    def check(self, request: InboundRequest) -> None:
        token = _bearer_token(request.authorization)
        if token is None:
            logger.warning("Missing bearer token on %s from %s", request.path, request.client_address)
            raise Unauthorized()
        try:
            request.subject_id = self._tokens.verify(token)
        except AuthError as exc:
            logger.warning("Bearer token rejected on %s from %s", request.path, request.client_address)
            logger.debug("Bearer token rejection reason: %s", exc.code)
            raise Unauthorized() from exc


class GuardChain:
    """Run guards in declared order; the first rejection wins."""

    def __init__(self, guards: list[Guard]) -> None:
        self.guards = list(guards)

    def check(self, request: InboundRequest) -> None:
        for guard in self.guards:
            guard.check(request)
            logger.debug("%s passed for %s %s", guard.name, request.method, request.path)

    def extended(self, *guards: Guard) -> GuardChain:
        """Return a new chain with guards appended after this chain's guards."""
        return GuardChain([*self.guards, *guards])


def _bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, value = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()
