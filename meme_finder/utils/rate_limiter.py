"""Process-wide pacing for providers shared by several client instances.

BaseClient's token bucket is per instance. Reddit throttles by client IP,
so every RedditClient also goes through the global limiter here.
"""
from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque


class RateLimiter:
    """Enforces a minimum gap between calls to the same provider."""

    def __init__(self, history_size: int = 500) -> None:
        self._calls: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=history_size))
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def wait_if_needed(self, provider: str, min_interval_sec: float) -> None:
        """Sleep until `min_interval_sec` has passed since the provider's last call."""
        async with self._locks[provider]:
            calls = self._calls[provider]
            if calls:
                remaining = min_interval_sec - (time.monotonic() - calls[-1])
                if remaining > 0:
                    await asyncio.sleep(remaining)
            calls.append(time.monotonic())

    def get_call_count(self, provider: str, window_sec: float = 60.0) -> int:
        """Calls made to a provider in the last `window_sec` seconds."""
        cutoff = time.monotonic() - window_sec
        return sum(1 for t in self._calls.get(provider, ()) if t > cutoff)


_rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    """The shared limiter instance."""
    return _rate_limiter
