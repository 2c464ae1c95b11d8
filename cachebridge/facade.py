"""
cachebridge - Cache Facade

Standardized key-value cache interface on top of a tag-capable Storage.

Every entry written through the facade is tagged with the facade's
namespace, so clear() only invalidates those entries even when the
storage is shared with other consumers.

Usage:
    from cachebridge import CacheFacade
    from cachebridge.storage import MemoryStorage

    cache = CacheFacade(MemoryStorage())
    cache.set("key", "value", ttl=3600)
    value = cache.get("key")
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import CacheOperationError, ErrorCode, InvalidArgumentError
from .storage.interface import MISSING, Storage
from .ttl import TTL, expire

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "CacheFacade"


class CacheFacade:
    """
    Cache with get/set/delete/clear/has and bulk variants.

    Error policy:
    - Invalid keys and bulk inputs raise InvalidArgumentError
    - Storage failures on get/has/get_multiple raise CacheOperationError
    - Storage failures on set/delete/clear are logged and reported as False
    """

    def __init__(self, storage: Storage, namespace: str = CACHE_NAMESPACE):
        if not namespace:
            raise ValueError("namespace must be a non-empty string")
        self.storage = storage
        self.namespace = namespace

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key
            default: Value returned when the key is absent or expired

        Returns:
            Cached value, or default
        """
        self.assert_valid_key(key)

        try:
            value = self.storage.load(key)
        except Exception as e:
            raise CacheOperationError(f'Unable load key "{key}"!', details={"key": key, "error": str(e)}) from e

        if value is MISSING:
            return default

        return value

    def set(self, key: str, value: Any, ttl: TTL = None) -> bool:
        """
        Store a value in the cache.

        Expiration is fixed at write time; reads never extend it.

        Args:
            key: Cache key
            value: Value to cache
            ttl: None or 0 (never expires), seconds, timedelta or datetime

        Returns:
            True if stored, False if the storage failed
        """
        self.assert_valid_key(key)
        expiration = expire(ttl)

        try:
            self.storage.save(key, value, expire=expiration, sliding=False, tags=[self.namespace])
        except Exception as e:
            self._warn(e, operation="set", key=key)
            return False

        return True

    def delete(self, key: str) -> bool:
        """Delete a key. Deleting a missing key succeeds."""
        self.assert_valid_key(key)

        try:
            self.storage.remove(key)
        except Exception as e:
            self._warn(e, operation="delete", key=key)
            return False

        return True

    def clear(self) -> bool:
        """Remove every entry written through this facade's namespace."""
        try:
            self.storage.clean(tags=[self.namespace])
        except Exception as e:
            self._warn(e, operation="clear")
            return False

        return True

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """
        Retrieve several values.

        Args:
            keys: Iterable of cache keys
            default: Value used for absent keys

        Returns:
            Mapping with every requested key, in request order
        """
        keys = self._as_key_list(keys)
        for key in keys:
            self.assert_valid_key(key)

        try:
            loaded = self.storage.bulk_load(keys)
        except Exception as e:
            raise CacheOperationError("Unable load keys!", details={"key_count": len(keys), "error": str(e)}) from e

        result: dict[str, Any] = {}
        for key in keys:
            value = loaded.get(key, MISSING)
            result[key] = default if value is MISSING else value
        return result

    def set_multiple(self, values: Mapping[Any, Any] | Iterable[tuple[Any, Any]], ttl: TTL = None) -> bool:
        """
        Store several values with one TTL.

        Not atomic: stops at the first failed write and keeps earlier ones.

        Args:
            values: Mapping or iterable of (key, value) pairs
            ttl: Applied to every entry

        Returns:
            True if every write succeeded
        """
        pairs = self._as_pair_list(values)
        expiration = expire(ttl)

        for key, value in pairs:
            if not self.set(str(key), value, expiration):
                return False

        return True

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """Delete several keys, stopping at the first failure."""
        for key in self._as_key_list(keys):
            if not self.delete(str(key)):
                return False

        return True

    def has(self, key: str) -> bool:
        """
        Check whether a key holds a value.

        Performs a full load, so storage side effects such as hit counters
        or sliding refreshes apply.
        """
        self.assert_valid_key(key)

        try:
            return self.storage.load(key) is not MISSING
        except Exception as e:
            raise CacheOperationError(f'Unable load key "{key}"!', details={"key": key, "error": str(e)}) from e

    @staticmethod
    def assert_valid_key(key: Any) -> None:
        """Raise InvalidArgumentError unless key is a non-empty string."""
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError(
                "Invalid key! Key should be a non-empty string.",
                error_code=ErrorCode.INVALID_KEY,
            )

    @staticmethod
    def _as_key_list(keys: Any) -> list[Any]:
        if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
            raise InvalidArgumentError("Keys should be an iterable of strings.")
        return list(keys)

    @staticmethod
    def _as_pair_list(values: Any) -> list[tuple[Any, Any]]:
        if isinstance(values, Mapping):
            return list(values.items())

        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise InvalidArgumentError("Values should be a mapping or an iterable of pairs.")

        pairs = []
        for item in values:
            if not isinstance(item, (tuple, list)) or len(item) != 2:
                raise InvalidArgumentError("Values should be a mapping or an iterable of pairs.")
            pairs.append((item[0], item[1]))
        return pairs

    def _warn(self, error: Exception, *, operation: str, key: str | None = None) -> None:
        logger.warning(
            "CacheFacade: %s.",
            error,
            extra={"operation": operation, "key": key, "namespace": self.namespace, "error": str(error)},
        )
