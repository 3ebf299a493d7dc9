"""
In-memory rolling-window rate limiting.
One limiter instance is built per application and shared by every request.
"""

import logging
import time
from collections import deque
from threading import Lock
from typing import Callable, Optional

from fastapi import Request

from medibook.exceptions import RateLimited

logger = logging.getLogger(__name__)

LOGIN_LIMIT_MESSAGE = "Too many login attempts from this IP, please try again later."

# Drop idle keys at most this often
CLEANUP_INTERVAL = 60


class RateLimiter:
    """Allow at most `limit` hits per key in any rolling `window_seconds` span."""

    def __init__(self, limit: int, window_seconds: int, clock: Optional[Callable[[], float]] = None):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock or time.monotonic
        self._hits: dict[str, deque] = {}
        self._lock = Lock()
        self._last_cleanup = self.clock()

    def _cleanup(self, now: float):
        if now - self._last_cleanup < CLEANUP_INTERVAL:
            return
        stale = [k for k, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
        for k in stale:
            del self._hits[k]
        if stale:
            logger.debug(f"Cleaned up {len(stale)} idle rate limit entries")
        self._last_cleanup = now

    def hit(self, key: str) -> tuple[bool, int, int]:
        """
        Record an attempt for `key`.

        Returns:
            Tuple of (is_allowed, attempts_in_window, retry_after_seconds)
        """
        now = self.clock()
        with self._lock:
            self._cleanup(now)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = int(self.window_seconds - (now - hits[0])) + 1
                return False, len(hits), retry_after

            hits.append(now)
            return True, len(hits), 0

    def reset(self):
        with self._lock:
            self._hits.clear()


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def limit_login_attempts(request: Request):
    """FastAPI dependency guarding the login endpoint."""
    limiter: RateLimiter = request.app.state.login_limiter
    key = f"login:{client_address(request)}"
    allowed, count, retry_after = limiter.hit(key)
    if not allowed:
        logger.warning(f"Login rate limit exceeded for {key} ({count} attempts, retry in {retry_after}s)")
        raise RateLimited(LOGIN_LIMIT_MESSAGE)
