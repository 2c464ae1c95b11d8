"""
cachebridge - Redis Storage

Synchronous Redis storage implementation with:
- JSON serialization for values
- Absolute expiration via PEXPIREAT, optional sliding refresh on read
- Tag index sets for clean()
- Key prefixing so several applications can share one database

Layout:
    <prefix>:entry:<key>   JSON envelope {"v": value, "s": sliding_ms, "t": [tags]}
    <prefix>:tag:<tag>     set of keys saved with <tag>

Example:
    storage = RedisStorage(redis_url="redis://localhost:6379/0", prefix="cachebridge")
    storage.save("greeting", {"msg": "hello"}, tags=["CacheFacade"])
    val = storage.load("greeting")
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from .interface import MISSING, Storage

logger = logging.getLogger(__name__)

try:
    from redis import Redis
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisStorage(Storage):
    """
    Redis storage with JSON serialization, expiration and tags.

    Notes:
    - Values must be JSON serializable.
    - Redis errors propagate to the caller unchanged.
    - Tag sets are read and dropped atomically by clean(); a racing save is
      always tracked for the next clean().
    - Entries that expire inside Redis keep their tag membership until the
      next clean() of that tag.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        prefix: str = "cachebridge",
        max_connections: int = 10,
        socket_timeout: int = 5,
        client: Redis | None = None,
    ) -> None:
        """
        Initialize Redis storage.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            prefix: Prefix for every key written by this storage
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            client: Pre-built client, used instead of redis_url when given
        """
        if client is None and not redis_url:
            raise ValueError("redis_url is required")

        self.prefix = prefix.strip() or "cachebridge"
        self._hits = 0
        self._misses = 0
        self._saves = 0
        self._removes = 0

        if client is not None:
            self._client = client
        else:
            # Lazy connection; connects on first command
            self._client = Redis.from_url(
                url=redis_url,
                decode_responses=True,
                max_connections=max_connections,
                socket_timeout=socket_timeout,
            )

    # ------------ Helpers ------------

    def _entry_key(self, key: str) -> str:
        return f"{self.prefix}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    @staticmethod
    def _encode(value: Any, window_ms: int | None, tags: list[str]) -> str:
        return json.dumps({"v": value, "s": window_ms, "t": tags}, ensure_ascii=False, separators=(",", ":"))

    @staticmethod
    def _decode(data: str | bytes) -> dict[str, Any]:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            envelope = json.loads(data)
        except ValueError as e:
            raise ValueError(f"Corrupted cache entry: {e}") from e
        if not isinstance(envelope, dict) or "v" not in envelope:
            raise ValueError("Corrupted cache entry: missing value envelope")
        return envelope

    @classmethod
    def _stored_tags(cls, data: str | bytes | None) -> set[str]:
        """Tags recorded in a raw envelope; empty if absent or unreadable."""
        if data is None:
            return set()
        try:
            return set(cls._decode(data).get("t") or ())
        except ValueError:
            return set()

    # ------------ Storage interface ------------

    def load(self, key: str) -> Any:
        """Load a value, refreshing sliding expiration on hit."""
        entry_key = self._entry_key(key)
        data = self._client.get(entry_key)
        if data is None:
            self._misses += 1
            return MISSING

        envelope = self._decode(data)
        if envelope.get("s"):
            self._client.pexpire(entry_key, int(envelope["s"]))

        self._hits += 1
        return envelope["v"]

    def save(
        self,
        key: str,
        value: Any,
        *,
        expire: datetime | None = None,
        sliding: bool = False,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a value; an expiration already in the past removes the key."""
        entry_key = self._entry_key(key)
        tag_list = sorted(set(tags))

        expire_at_ms: int | None = None
        window_ms: int | None = None
        if expire is not None:
            expire_at_ms = int(expire.timestamp() * 1000)
            now_ms = int(time.time() * 1000)
            if expire_at_ms <= now_ms:
                self.remove(key)
                return
            if sliding:
                window_ms = expire_at_ms - now_ms

        payload = self._encode(value, window_ms, tag_list)
        stale_tags = self._stored_tags(self._client.get(entry_key)) - set(tag_list)

        pipe = self._client.pipeline(transaction=True)
        pipe.set(entry_key, payload)
        for tag in sorted(stale_tags):
            pipe.srem(self._tag_key(tag), key)
        if expire_at_ms is not None:
            pipe.pexpireat(entry_key, expire_at_ms)
        for tag in tag_list:
            pipe.sadd(self._tag_key(tag), key)
        pipe.execute()
        self._saves += 1

    def remove(self, key: str) -> None:
        """Delete a single key and its tag memberships."""
        entry_key = self._entry_key(key)
        tags = self._stored_tags(self._client.get(entry_key))

        pipe = self._client.pipeline(transaction=True)
        pipe.delete(entry_key)
        for tag in sorted(tags):
            pipe.srem(self._tag_key(tag), key)
        deleted = pipe.execute()[0]

        if deleted:
            self._removes += 1

    def bulk_load(self, keys: Sequence[str]) -> dict[str, Any]:
        """Load multiple values in one round-trip using MGET."""
        if not keys:
            return {}

        raw_values = self._client.mget([self._entry_key(k) for k in keys])

        result: dict[str, Any] = {}
        refresh: list[tuple[str, int]] = []
        # mget preserves order
        for key, raw in zip(keys, raw_values, strict=True):
            if raw is None:
                self._misses += 1
                result[key] = MISSING
                continue
            envelope = self._decode(raw)
            if envelope.get("s"):
                refresh.append((self._entry_key(key), int(envelope["s"])))
            self._hits += 1
            result[key] = envelope["v"]

        if refresh:
            pipe = self._client.pipeline(transaction=False)
            for entry_key, window_ms in refresh:
                pipe.pexpire(entry_key, window_ms)
            pipe.execute()

        return result

    def clean(self, *, tags: Iterable[str]) -> None:
        """
        Remove every entry saved with one of the tags.

        The tag sets are read and dropped in one MULTI/EXEC block. A save
        racing with clean() may or may not be removed by it, but its key is
        always recorded in a tag set, so the next clean() removes it.
        Members are re-checked against the tags stored in their envelope, so
        an entry re-saved without the tag survives.
        """
        wanted = set(tags)
        if not wanted:
            return

        tag_keys = [self._tag_key(tag) for tag in sorted(wanted)]
        pipe = self._client.pipeline(transaction=True)
        for tag_key in tag_keys:
            pipe.smembers(tag_key)
        pipe.delete(*tag_keys)
        replies = pipe.execute()
        members = sorted(set().union(*replies[: len(tag_keys)]))

        doomed: list[str] = []
        if members:
            entry_keys = [self._entry_key(m) for m in members]
            for entry_key, raw in zip(entry_keys, self._client.mget(entry_keys), strict=True):
                if raw is None:
                    continue
                try:
                    entry_tags = set(self._decode(raw).get("t") or ())
                except ValueError:
                    # Unreadable entries under our tag are dropped too
                    entry_tags = wanted
                if entry_tags & wanted:
                    doomed.append(entry_key)

        removed = 0
        # Keep DEL batches reasonable
        batch_size = 1000
        for i in range(0, len(doomed), batch_size):
            removed += int(self._client.delete(*doomed[i : i + batch_size]))

        self._removes += removed
        logger.info(
            "Cleaned %d entries from Redis storage '%s'",
            removed,
            self.prefix,
            extra={"prefix": self.prefix, "tags": sorted(wanted), "removed": removed},
        )

    def get_stats(self) -> dict[str, Any]:
        """Return storage statistics and basic Redis info."""
        total_requests = self._hits + self._misses
        stats: dict[str, Any] = {
            "backend": "redis",
            "prefix": self.prefix,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round((self._hits / total_requests) * 100, 2) if total_requests else 0.0,
            "saves": self._saves,
            "removes": self._removes,
            "connected": False,
        }

        try:
            stats["connected"] = bool(self._client.ping())
            info = self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except Exception as e:
            # INFO may be restricted; keep minimal stats
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats

    def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            self._client.close()
            logger.info(f"Closed Redis storage for prefix '{self.prefix}'")
        finally:
            self._client.connection_pool.disconnect()
