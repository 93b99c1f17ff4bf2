"""
Result cache keyed by content hash.

The pipeline receives a ResultCache instance explicitly, so the in-memory LRU
can be replaced by another implementation without touching pipeline logic.
Entries are immutable ModerationResult instances and may be shared freely.
"""
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.evaluation.result import ModerationResult

logger = get_logger("cache")


class ResultCache(ABC):
    """Interface for moderation result caches."""

    @abstractmethod
    async def get(self, key: str) -> Optional[ModerationResult]:
        """Return the cached result or None on a miss."""
        pass

    @abstractmethod
    async def put(self, key: str, result: ModerationResult) -> None:
        """Store a result under key."""
        pass

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        pass

    async def clear(self) -> None:
        pass


class InMemoryResultCache(ResultCache):
    """
    Process-local LRU cache.

    max_entries <= 0 disables eviction. Lives for the process lifetime; no
    persistence across restarts.
    """

    def __init__(self, max_entries: int = 256):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, ModerationResult]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    async def get(self, key: str) -> Optional[ModerationResult]:
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1

        logger.debug(f"Cache hit: {key[:16]}")
        return result

    async def put(self, key: str, result: ModerationResult) -> None:
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while 0 < self.max_entries < len(self._entries):
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Cache evicted: {evicted[:16]}")

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
