"""
api/limiter.py -- slowapi rate limiter factory.

The Limiter holds the counter storage that RateLimitGuard hits. Build exactly
one per application (in the lifespan) and hand it to the guard: two Limiter
instances would keep two isolated counter stores and the cap would never be
reached.

Fixed window: a client's counter starts with its first request and resets
when the window elapses.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address


def build_limiter(storage_uri: str = "memory://") -> Limiter:
    return Limiter(key_func=get_remote_address, storage_uri=storage_uri, strategy="fixed-window")
