"""
cachebridge - Memory Storage

In-process tag-capable storage with LRU eviction, absolute and sliding
expiration, and tag based invalidation. Thread-safe and suitable for
single-process deployments.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .interface import MISSING, Storage

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expiry: float | None
    window: float | None
    tags: frozenset[str]


class MemoryStorage(Storage):
    """
    In-memory storage with LRU eviction.

    Features:
    - LRU eviction when max_size is reached
    - Absolute expiration, optionally sliding
    - Tag index for clean()
    - Thread-safe operations
    """

    def __init__(self, max_size: int = 1000):
        """
        Initialize memory storage.

        Args:
            max_size: Maximum number of entries (LRU eviction when exceeded)
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size

        self._entries: OrderedDict[str, _Entry] = OrderedDict()

        # Stats
        self._hits = 0
        self._misses = 0
        self._saves = 0
        self._removes = 0
        self._evictions = 0

        self._lock = threading.Lock()

    def _is_expired(self, entry: _Entry, now: float) -> bool:
        return entry.expiry is not None and now >= entry.expiry

    def _load_locked(self, key: str, now: float) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return MISSING

        if self._is_expired(entry, now):
            del self._entries[key]
            self._misses += 1
            return MISSING

        if entry.window is not None:
            entry.expiry = now + entry.window

        self._entries.move_to_end(key)
        self._hits += 1
        return entry.value

    def load(self, key: str) -> Any:
        """Load a value, or MISSING."""
        with self._lock:
            return self._load_locked(key, time.time())

    def save(
        self,
        key: str,
        value: Any,
        *,
        expire: datetime | None = None,
        sliding: bool = False,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value with optional expiration and tags."""
        now = time.time()
        expiry = expire.timestamp() if expire is not None else None
        window = expiry - now if sliding and expiry is not None else None

        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Evicted key from memory storage: %s", evicted_key)

            self._entries[key] = _Entry(value=value, expiry=expiry, window=window, tags=frozenset(tags))
            self._entries.move_to_end(key)
            self._saves += 1

    def remove(self, key: str) -> None:
        """Remove a key if present."""
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._removes += 1

    def bulk_load(self, keys: Sequence[str]) -> dict[str, Any]:
        """Load several values under a single lock acquisition."""
        with self._lock:
            now = time.time()
            return {key: self._load_locked(key, now) for key in keys}

    def clean(self, *, tags: Iterable[str]) -> None:
        """Remove every entry carrying one of the tags."""
        wanted = frozenset(tags)
        if not wanted:
            return

        with self._lock:
            doomed = [key for key, entry in self._entries.items() if entry.tags & wanted]
            for key in doomed:
                del self._entries[key]
            self._removes += len(doomed)

        logger.info(
            "Cleaned %d entries from memory storage",
            len(doomed),
            extra={"tags": sorted(wanted), "removed": len(doomed)},
        )

    def get_stats(self) -> dict[str, Any]:
        """Get storage statistics."""
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "saves": self._saves,
                "removes": self._removes,
                "evictions": self._evictions,
            }

    def close(self) -> None:
        """Memory storage holds no external resources."""
        logger.debug("Memory storage closed")
