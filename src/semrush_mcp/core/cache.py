"""In-memory TTL cache for Semrush API responses.

One instance is shared by every operation of a client. Keys embed the full
request target, so operations never collide. Entries expire lazily on lookup,
and ``set`` sweeps the whole store at most once per TTL period.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .errors import ConfigurationError
from .models import ApiResponse

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


@dataclass
class _CacheEntry:
    value: ApiResponse
    stored_at: float


class ResponseCache:
    """Maps request keys to response envelopes for ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ConfigurationError(f"Cache TTL must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, _CacheEntry] = {}
        self._last_sweep = clock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(url: str, params: Mapping[str, Any]) -> str:
        """Build a deterministic key from the endpoint and its full parameter set."""
        return f"{url}:{json.dumps(dict(params), sort_keys=True, separators=(',', ':'))}"

    def _expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[ApiResponse]:
        entry = self._store.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self._expired(entry, self._clock()):
            self._store.pop(key, None)
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: ApiResponse) -> None:
        now = self._clock()
        # Keys that are never read again would otherwise stay forever.
        if now - self._last_sweep >= self.ttl_seconds:
            self.purge_expired()
            self._last_sweep = now
        self._store[key] = _CacheEntry(value=value, stored_at=now)

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._store.items() if self._expired(e, now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
