"""
Per-provider rate limiter

Serializes requests to one provider in submission order and keeps a minimum
interval between the starts of consecutive requests.
"""

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class RateLimiter:
    """FIFO limiter: one request at a time, at most requests_per_minute starts per minute"""

    def __init__(self, requests_per_minute: int = 60):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self.requests_per_minute = requests_per_minute
        self.interval = 60.0 / requests_per_minute
        # asyncio.Lock wakes waiters in FIFO order and does not let newcomers barge
        self._lock = asyncio.Lock()
        self._last_start: float | None = None

    async def submit(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run fn once its turn comes.

        Args:
            fn: Coroutine factory performing the request

        Returns:
            The value returned by fn()
        """
        async with self._lock:
            if self._last_start is not None:
                wait = self.interval - (time.monotonic() - self._last_start)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_start = time.monotonic()
            return await fn()
