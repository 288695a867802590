"""
In-memory response cache for upstream payloads (booking probes and slot fetches).

One instance is created per process in the app lifespan and injected into the probe
and slot fetcher. Entries are never evicted; a read at or past the TTL is a miss.
"""
import logging
import threading
import time
from typing import Any, Callable, NamedTuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class CacheEntry(NamedTuple):
    key: str
    payload: Any
    written_at: float


class ResponseCache:
    """Key -> payload store with a fixed time-to-live."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.written_at >= self.ttl_seconds:
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        entry = CacheEntry(key=key, payload=payload, written_at=self._clock())
        with self._lock:
            self._entries[key] = entry

    def clear(self) -> int:
        """Remove every entry; return how many there were (stale ones included)."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Response cache cleared (%s entries)", count)
        return count

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size
