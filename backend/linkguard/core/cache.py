import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from linkguard.core.config import Settings
from linkguard.models.schemas import AnalysisResult

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class CacheEntry:
    result: AnalysisResult
    checked_at: int


class ResultCache:
    """
    In-memory URL -> AnalysisResult store.

    Expired entries are dropped lazily on ``get`` and in bulk by ``sweep``,
    which an outside timer is expected to call. Going over capacity evicts
    the oldest ``eviction_batch`` entries in one pass rather than one per
    insert. Callers always get a copy, never the stored object.
    """

    def __init__(self, ttl_ms: int = 24 * 60 * 60 * 1000, capacity: int = 1000,
                 eviction_batch: int = 100, clock: Clock = now_ms):
        self.ttl_ms = ttl_ms
        self.capacity = capacity
        self.eviction_batch = eviction_batch
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = now_ms) -> "ResultCache":
        return cls(
            ttl_ms=settings.cache_ttl_ms,
            capacity=settings.cache_capacity,
            eviction_batch=settings.cache_eviction_batch,
            clock=clock,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    def _expired(self, entry: CacheEntry, now: int) -> bool:
        return now - entry.checked_at > self.ttl_ms

    def get(self, url: str) -> Optional[AnalysisResult]:
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if self._expired(entry, self.clock()):
                del self._entries[url]
                logger.debug(f"Cache entry expired for {url}")
                return None
            return entry.result.model_copy(deep=True)

    def put(self, url: str, result: AnalysisResult) -> None:
        with self._lock:
            self._entries[url] = CacheEntry(result=result.model_copy(deep=True), checked_at=result.checked_at)
            if len(self._entries) > self.capacity:
                self._evict_oldest()

    def _evict_oldest(self) -> None:
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].checked_at)
        for url, _ in oldest[:self.eviction_batch]:
            del self._entries[url]
        logger.info(f"Cache over capacity; evicted {min(self.eviction_batch, len(oldest))} oldest entries")

    def sweep(self, now: Optional[int] = None) -> int:
        """Drop every entry older than the TTL. Returns how many went."""
        with self._lock:
            if now is None:
                now = self.clock()
            stale = [url for url, entry in self._entries.items() if self._expired(entry, now)]
            for url in stale:
                del self._entries[url]
            logger.info(f"Cache cleaned, {len(self._entries)} entries remaining")
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
