"""Sliding-window rate limiter for outbound Semrush requests.

Admits at most ``rate_limit`` requests in any rolling window (one second by
default). Callers over the limit are suspended and re-checked every
``poll_interval`` seconds; they are never rejected.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 10
DEFAULT_WINDOW_SECONDS = 1.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.1


class RateLimiter:
    """Tracks admitted request timestamps and gates new ones."""

    def __init__(
        self,
        rate_limit: int = DEFAULT_RATE_LIMIT,
        window: float = DEFAULT_WINDOW_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if rate_limit <= 0:
            raise ConfigurationError(f"Rate limit must be a positive integer, got {rate_limit}")
        if window <= 0 or poll_interval <= 0:
            raise ConfigurationError("Rate limiter window and poll interval must be positive")
        self.rate_limit = rate_limit
        self.window = window
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()

    def _prune(self, now: float) -> None:
        cutoff = now - self.window
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    def try_admit(self) -> bool:
        """Record a request slot if one is free. Never suspends."""
        now = self._clock()
        self._prune(now)
        if len(self._timestamps) < self.rate_limit:
            self._timestamps.append(now)
            return True
        return False

    async def admit(self) -> None:
        """Wait until a request slot is available, then record it."""
        waited = False
        while not self.try_admit():
            if not waited:
                logger.debug("Rate limit of %d/s reached, waiting for a slot", self.rate_limit)
                waited = True
            await self._sleep(self.poll_interval)

    def in_window(self) -> int:
        """Number of admitted requests still inside the current window."""
        self._prune(self._clock())
        return len(self._timestamps)
