"""Rate limiting behind an injectable port.

``SlidingWindowRateLimiter`` keeps per-key hit timestamps in process memory.
A distributed backend can replace it by implementing ``RateLimiter``.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one rate limit check."""

    allowed: bool
    remaining: int
    retry_after: float


class RateLimiter(Protocol):
    """Counts hits per key within a time window."""

    limit: int
    window_seconds: float

    async def hit(self, key: str) -> RateLimitDecision:
        """Record a hit for ``key`` and report whether it is within the limit."""
        ...

    async def reset(self, key: str) -> None:
        ...


class SlidingWindowRateLimiter:
    """
    In-memory sliding window limiter.

    A hit is allowed when fewer than ``limit`` allowed hits for the same key
    fall inside the trailing ``window_seconds``. Rejected hits are not counted.
    Keys idle for a whole window are evicted at most once per window, on
    the next hit for any key.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_prune = clock()
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            if now - self._last_prune >= self.window_seconds:
                self._evict_idle(now)
            hits = self._hits.setdefault(key, deque())
            window_start = now - self.window_seconds
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = hits[0] + self.window_seconds - now
                return RateLimitDecision(False, 0, max(retry_after, 0.0))

            hits.append(now)
            return RateLimitDecision(True, self.limit - len(hits), 0.0)

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._hits.pop(key, None)

    def _evict_idle(self, now: float) -> int:
        """Drop keys with no hits inside the window. Returns the number removed."""
        self._last_prune = now
        window_start = now - self.window_seconds
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]
        return len(stale)


__all__ = ["RateLimitDecision", "RateLimiter", "SlidingWindowRateLimiter"]
