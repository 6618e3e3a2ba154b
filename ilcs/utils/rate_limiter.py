"""Rate limiter for page requests."""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Minimum-interval rate limiter shared by concurrent tasks.

    Every call to ``async_wait`` returns no sooner than ``delay`` seconds after
    the previous call returned, so page opens stay spaced out even when
    several chapters are in flight.

    Args:
        delay: Seconds between consecutive requests.
    """

    def __init__(self, delay: float = 0.3):
        self.delay = max(0.0, delay)
        self._last: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: dict) -> "RateLimiter":
        return cls(delay=config.get("delay_ms", 300) / 1000.0)

    async def async_wait(self) -> None:
        """Yield until a request is allowed."""
        async with self._lock:
            if self._last is None:
                sleep_time = self.delay
            else:
                sleep_time = self._last + self.delay - time.monotonic()
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
            self._last = time.monotonic()
