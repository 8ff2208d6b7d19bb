"""
In-memory TTL cache for analysis payloads.

Keyed by the exact (url, fast, llm) request. Entries expire a fixed number of
seconds after insertion. Expired entries are dropped when looked up and swept
on every store; past max_entries the oldest entries are evicted first. Only
successful payloads are stored, so a cached hit is never an error.
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import config
from models import AnalysisPayload

logger = logging.getLogger(__name__)

CacheKey = tuple[str, bool, bool]


@dataclass
class CacheStats:
    """Counters for cache operations."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self, size: int) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "size": size,
            "hit_rate_percent": round(self.hit_rate, 2),
        }


class AnalysisCache:
    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ):
        self.ttl_seconds = config.ANALYSIS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.max_entries = config.ANALYSIS_CACHE_MAX_ENTRIES if max_entries is None else max_entries
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, AnalysisPayload]] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @staticmethod
    def key(url: str, fast: bool = False, llm: bool = False) -> CacheKey:
        return (url, bool(fast), bool(llm))

    def get(self, url: str, fast: bool = False, llm: bool = False) -> AnalysisPayload | None:
        """Copy of the stored payload marked cached=True, or None if absent or expired."""
        key = self.key(url, fast, llm)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            stored_at, payload = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self._stats.evictions += 1
                self._stats.misses += 1
                logger.debug("Analysis cache entry expired for %s", url)
                return None
            self._stats.hits += 1
            hit = copy.deepcopy(payload)
        hit["cached"] = True
        return hit

    def set(self, url: str, fast: bool, llm: bool, payload: AnalysisPayload) -> bool:
        """Store a successful payload. Returns False (and stores nothing) otherwise."""
        if not payload or payload.get("success") is False:
            return False
        key = self.key(url, fast, llm)
        with self._lock:
            now = self._clock()
            self._sweep(now)
            # Re-inserting moves the key to the end, keeping dict order oldest-first.
            self._entries.pop(key, None)
            self._entries[key] = (now, copy.deepcopy(payload))
            self._stats.sets += 1
            while len(self._entries) > max(1, self.max_entries):
                del self._entries[next(iter(self._entries))]
                self._stats.evictions += 1
        return True

    def _sweep(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        if expired:
            self._stats.evictions += len(expired)
            logger.debug("Swept %d expired analysis cache entries", len(expired))

    def evict(self, url: str, fast: bool = False, llm: bool = False) -> bool:
        with self._lock:
            removed = self._entries.pop(self.key(url, fast, llm), None) is not None
            if removed:
                self._stats.evictions += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return self._stats.to_dict(len(self._entries))
