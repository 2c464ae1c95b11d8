"""
cachebridge - Memory Storage Tests

Tests LRU eviction, absolute and sliding expiration, tag invalidation,
statistics and thread safety of MemoryStorage.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from cachebridge.storage.interface import MISSING
from cachebridge.storage.memory import MemoryStorage


def _at(clock: Any, seconds: float) -> datetime:
    """Absolute datetime `seconds` after the fake clock's current time."""
    return datetime.fromtimestamp(clock.now + seconds, tz=timezone.utc)


class TestMemoryStorage:
    """Test suite for MemoryStorage."""

    def test_initialization(self) -> None:
        """Test storage initialization and empty stats."""
        storage = MemoryStorage(max_size=50)
        assert storage.max_size == 50

        stats = storage.get_stats()
        assert stats["backend"] == "memory"
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_invalid_max_size(self) -> None:
        """A storage must hold at least one entry."""
        with pytest.raises(ValueError):
            MemoryStorage(max_size=0)

    def test_save_and_load(self, storage: MemoryStorage) -> None:
        """Test basic save and load."""
        storage.save("key1", "value1")

        assert storage.load("key1") == "value1"
        stats = storage.get_stats()
        assert stats["hits"] == 1
        assert stats["saves"] == 1

    def test_load_missing(self, storage: MemoryStorage) -> None:
        """Missing keys load as MISSING, not None."""
        assert storage.load("nonexistent") is MISSING
        assert storage.get_stats()["misses"] == 1

    def test_stores_arbitrary_objects(self, storage: MemoryStorage) -> None:
        """Values are kept by reference, never serialized."""
        value = object()
        storage.save("obj", value)

        assert storage.load("obj") is value

    def test_remove(self, storage: MemoryStorage) -> None:
        """Removing deletes the entry; removing again is silent."""
        storage.save("key1", "value1")

        storage.remove("key1")
        storage.remove("key1")

        assert storage.load("key1") is MISSING
        assert storage.get_stats()["removes"] == 1

    def test_absolute_expiration(self, storage: MemoryStorage, clock: Any) -> None:
        """Entries vanish once their expiration passes."""
        storage.save("key1", "value1", expire=_at(clock, 5))

        clock.advance(4)
        assert storage.load("key1") == "value1"

        clock.advance(2)
        assert storage.load("key1") is MISSING
        assert storage.get_stats()["size"] == 0

    def test_naive_datetime_expiration(self, storage: MemoryStorage) -> None:
        """Naive datetimes are interpreted as local time."""
        storage.save("past", 1, expire=datetime.now() - timedelta(seconds=1))
        storage.save("future", 2, expire=datetime.now() + timedelta(hours=1))

        assert storage.load("past") is MISSING
        assert storage.load("future") == 2

    def test_sliding_expiration(self, storage: MemoryStorage, clock: Any) -> None:
        """Each hit on a sliding entry restarts its window."""
        storage.save("slide", "s", expire=_at(clock, 10), sliding=True)
        storage.save("fixed", "f", expire=_at(clock, 10))

        clock.advance(8)
        assert storage.load("slide") == "s"
        assert storage.load("fixed") == "f"

        clock.advance(8)
        assert storage.load("slide") == "s"
        assert storage.load("fixed") is MISSING

        clock.advance(11)
        assert storage.load("slide") is MISSING

    def test_sliding_without_expiration_never_expires(self, storage: MemoryStorage, clock: Any) -> None:
        """Sliding has no effect when there is no expiration."""
        storage.save("key", "value", sliding=True)

        clock.advance(10**6)
        assert storage.load("key") == "value"

    def test_bulk_load(self, storage: MemoryStorage) -> None:
        """Every requested key is returned, absent ones as MISSING."""
        for i in range(3):
            storage.save(f"key{i}", f"value{i}")

        result = storage.bulk_load(["key0", "key2", "nonexistent"])

        assert result == {"key0": "value0", "key2": "value2", "nonexistent": MISSING}

    def test_clean_by_tag(self, storage: MemoryStorage) -> None:
        """Only entries carrying one of the tags are removed."""
        storage.save("a", 1, tags=["red"])
        storage.save("b", 2, tags=["blue"])
        storage.save("c", 3, tags=["red", "blue"])
        storage.save("d", 4)

        storage.clean(tags=["red"])

        assert storage.bulk_load(["a", "b", "c", "d"]) == {"a": MISSING, "b": 2, "c": MISSING, "d": 4}

    def test_clean_multiple_tags(self, storage: MemoryStorage) -> None:
        """Any matching tag is enough."""
        storage.save("a", 1, tags=["red"])
        storage.save("b", 2, tags=["blue"])
        storage.save("c", 3, tags=["green"])

        storage.clean(tags=["red", "blue"])

        assert storage.get_stats()["size"] == 1
        assert storage.load("c") == 3

    def test_clean_without_tags_is_noop(self, storage: MemoryStorage) -> None:
        """An empty tag list removes nothing."""
        storage.save("a", 1, tags=["red"])

        storage.clean(tags=[])

        assert storage.load("a") == 1

    def test_resave_replaces_tags(self, storage: MemoryStorage) -> None:
        """Tags belong to the latest save of a key."""
        storage.save("a", 1, tags=["red"])
        storage.save("a", 2, tags=["blue"])

        storage.clean(tags=["red"])

        assert storage.load("a") == 2

    def test_lru_eviction(self) -> None:
        """Test LRU eviction when max_size is reached."""
        storage = MemoryStorage(max_size=3)
        for i in range(3):
            storage.save(f"key{i}", i)

        # Touch key0 so key1 becomes least recently used
        storage.load("key0")
        storage.save("key3", 3)

        assert storage.load("key1") is MISSING
        assert storage.load("key0") == 0
        assert storage.load("key3") == 3
        assert storage.get_stats()["evictions"] == 1

    def test_overwrite_does_not_evict(self) -> None:
        """Saving an existing key at capacity keeps everything."""
        storage = MemoryStorage(max_size=2)
        storage.save("a", 1)
        storage.save("b", 2)
        storage.save("a", 3)

        assert storage.get_stats()["evictions"] == 0
        assert storage.bulk_load(["a", "b"]) == {"a": 3, "b": 2}

    def test_hit_rate(self, storage: MemoryStorage) -> None:
        """Hit rate is a percentage rounded to two places."""
        storage.save("a", 1)
        storage.load("a")
        storage.load("a")
        storage.load("b")

        assert storage.get_stats()["hit_rate"] == 66.67

    def test_close(self, storage: MemoryStorage) -> None:
        """Memory storage keeps working after close."""
        storage.save("key1", "value1")
        storage.close()

        assert storage.load("key1") == "value1"

    def test_concurrent_operations(self, storage: MemoryStorage) -> None:
        """Parallel writers do not lose entries."""

        def save_values(start: int, end: int) -> None:
            for i in range(start, end):
                storage.save(f"key{i}", f"value{i}", tags=["t"])

        threads = [threading.Thread(target=save_values, args=(n * 10, n * 10 + 10)) for n in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert storage.get_stats()["size"] == 50
        for i in range(50):
            assert storage.load(f"key{i}") == f"value{i}"
