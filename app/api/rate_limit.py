"""Per-IP sliding window rate limiting for the contact endpoint.

Hits are kept in memory and reset when the process restarts.
"""

import logging
import math
import time
from collections import deque
from typing import Callable, Deque, Dict, Tuple

from fastapi import Request, Response

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a client has used up its request budget."""

    def __init__(self, limit: int, window_seconds: int, retry_after: int):
        super().__init__(f"Rate limit of {limit} requests exceeded")
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after

    @property
    def window_label(self) -> str:
        minutes = self.window_seconds // 60
        return f"{minutes} minutes" if minutes else f"{self.window_seconds} seconds"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(self.retry_after),
        }


class SlidingWindowRateLimiter:
    """Allows at most ``max_requests`` hits per key within ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def _expire(self, hits: Deque[float], now: float) -> None:
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Drop keys with no hits left in the window."""
        for key in list(self._hits):
            self._expire(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str) -> Tuple[int, int]:
        """
        Record a request for ``key``.

        Returns:
            Tuple of (remaining requests, seconds until the oldest hit expires)

        Raises:
            RateLimitExceeded: The key already used its budget for this window
        """
        now = self.clock()
        # at most one full sweep per window
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        hits = self._hits.setdefault(key, deque())
        self._expire(hits, now)

        if len(hits) >= self.max_requests:
            retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
            raise RateLimitExceeded(self.max_requests, self.window_seconds, retry_after)

        hits.append(now)
        reset = math.ceil(hits[0] + self.window_seconds - now)
        return self.max_requests - len(hits), reset

    def reset(self) -> None:
        self._hits.clear()
        self._last_sweep = self.clock()


def client_ip(request: Request, trust_proxy: bool = False) -> str:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_contact_rate_limit(request: Request, response: Response) -> None:
    """Dependency charging one request against the caller's IP budget.

    Bodies that are not valid JSON are rejected while the request is parsed,
    before this runs, so they are not charged.
    """
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    settings = request.app.state.settings
    ip = client_ip(request, settings.TRUST_PROXY)

    try:
        remaining, reset = limiter.hit(ip)
    except RateLimitExceeded:
        logger.warning(f"Rate limit exceeded for {ip} on {request.url.path}")
        raise

    response.headers["RateLimit-Limit"] = str(limiter.max_requests)
    response.headers["RateLimit-Remaining"] = str(remaining)
    response.headers["RateLimit-Reset"] = str(reset)
