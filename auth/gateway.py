"""
auth/gateway.py -- Signup, login and protected-resource access.

AuthGateway is the only entry point the API layer calls. Each operation:

  Received -> RateLimitChecked -> CsrfChecked -> [TokenChecked] -> Handled

Any step may end the request in Rejected(reason) instead.

Guard rejections are raised before any directory or token work happens, so a
refused request leaves no side effects behind.

Blocking work runs off the event loop:
  - UserStore reads go through asyncio.to_thread and are bounded by
    upstream_timeout; a slow database surfaces as UpstreamTimeout, not a hung
    request. Database driver errors become InternalError (logged here, never
    shown to the client).
  - The create is bounded inside the store instead: it gets a deadline and
    rolls back rather than commit late. A signup that reports UpstreamTimeout
    has written nothing and is safe to retry.
  - bcrypt runs through asyncio.to_thread so one slow hash does not stall
    other requests.

[Enumeration] login() raises the identical InvalidCredentials for an unknown
email and a wrong password, and runs a dummy bcrypt verify for unknown emails
so the two cases also take the same time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    DuplicateEmail,
    InternalError,
    InvalidCredentials,
    Unauthorized,
    UpstreamTimeout,
    ValidationError,
)
from auth.guards import GuardChain, TokenGuard
from auth.hasher import MAX_PASSWORD_BYTES, CredentialHasher
from auth.models import (
    LoginRequest,
    LoginResult,
    ProtectedRequest,
    ProtectedResult,
    SignupRequest,
    SignupResult,
    User,
)
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("authgate.auth.gateway")

T = TypeVar("T")

DEFAULT_UPSTREAM_TIMEOUT = 5.0


class AuthGateway:
    """Orchestrates the guard chain, hasher, directory and token service.

    All collaborators are injected; the gateway owns none of them and keeps no
    state of its own between requests.
    """

    def __init__(
        self,
        store: UserStore,
        hasher: CredentialHasher,
        tokens: TokenService,
        guards: GuardChain,
        upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.guards = guards
        self.protected_guards = guards.extended(TokenGuard(tokens))
        self.upstream_timeout = upstream_timeout

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def signup(self, req: SignupRequest) -> SignupResult:
        self.guards.check(req.context)

        name = req.name.strip()
        email = req.email.strip()
        if not name or not email or not req.password:
            raise ValidationError()
        if len(req.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        if await self._directory(self.store.find_by_email, email) is not None:
            # Same error the UNIQUE constraint produces on a lost race.
            raise DuplicateEmail()

        password_hash = await asyncio.to_thread(self.hasher.hash, req.password)
        user = await self._create(name, email, password_hash)
        logger.info("User %s signed up", user.id)
        return SignupResult(message="User created successfully", user_id=user.id)

    async def login(self, req: LoginRequest) -> LoginResult:
        self.guards.check(req.context)

        user = None
        if req.email.strip():
            user = await self._directory(self.store.find_by_email, req.email)
        if user is None:
            await asyncio.to_thread(self.hasher.dummy_verify, req.password)
            raise InvalidCredentials()
        if not await asyncio.to_thread(self.hasher.verify, req.password, user.hashed_password):
            raise InvalidCredentials()

        token = self.tokens.issue(user.id)
        logger.info("User %s logged in", user.id)
        return LoginResult(token=token, expires_in=self.tokens.lifetime_seconds)

    async def access_protected(self, req: ProtectedRequest) -> ProtectedResult:
        self.protected_guards.check(req.context)

        subject_id = req.context.subject_id
        user = await self._directory(self.store.get_by_id, subject_id)
        if user is None:
            # Signed by us, but the account behind it is gone.
            raise Unauthorized()
        return ProtectedResult(message="Access granted", user_id=user.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _directory(self, func: Callable[..., T], *args) -> T:
        """Run a blocking UserStore call in a worker thread with a deadline."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.upstream_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Directory call %s timed out after %.1fs", func.__name__, self.upstream_timeout)
            raise UpstreamTimeout() from exc
        except SQLAlchemyError as exc:
            logger.exception("Directory call %s failed", func.__name__)
            raise InternalError() from exc

    async def _create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a user; the store itself enforces the deadline.

        Not wrapped in wait_for: abandoning the worker thread would let it
        commit after the caller was already told the signup failed.
        """
        deadline = time.monotonic() + self.upstream_timeout
        try:
            return await asyncio.to_thread(self.store.create, name, email, password_hash, deadline)
        except TimeoutError as exc:
            logger.warning("Directory call create rolled back after %.1fs deadline", self.upstream_timeout)
            raise UpstreamTimeout() from exc
        except SQLAlchemyError as exc:
            logger.exception("Directory call create failed")
            raise InternalError() from exc
