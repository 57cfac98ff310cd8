"""
auth/tokens.py -- Signed, time-bound bearer tokens (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the subject (user id), issued-at
       and expiry claims. The signing secret is handed in once at startup and
       never changes for the life of the process. Rotating SECRET_KEY
       invalidates every token issued under the old key.

  Expiry: exactly token lifetime seconds after issuance, checked strictly --
       a token presented at its exp instant is already expired. jose's own exp
       check allows now == exp, so we disable it and compare ourselves against
       the injected clock.

  Stateless: there is no revocation list. A token dies only by expiry.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from jose import JWTError, jwt

from auth.errors import ExpiredToken, InvalidToken

logger = logging.getLogger("authgate.auth.tokens")

_ALGORITHM = "HS256"
DEFAULT_LIFETIME_SECONDS = 60 * 60


class TokenService:
    """Issue and verify bearer tokens for a subject id.

    Usage:
        tokens = TokenService(settings.secret_key)
        token = tokens.issue(user.id)
        tokens.verify(token)  # -> user.id

    clock returns the current epoch time in seconds; tests pass a fake one.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, subject_id: str) -> str:
        """Encode a signed JWT for subject_id, expiring lifetime_seconds from now."""
        issued_at = int(self._clock())
        payload = {
            "sub": subject_id,
            "iat": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the subject id carried by a valid token.

        Raises InvalidToken for a malformed token, a bad signature or missing
        claims. Raises ExpiredToken for an otherwise valid token at or past
        its expiry.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidToken() from exc

        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken()
        if not isinstance(expires_at, (int, float)):
            raise InvalidToken()
        if self._clock() >= expires_at:
            raise ExpiredToken()
        return subject
