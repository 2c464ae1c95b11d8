"""
cachebridge - Standardized Cache Facade

Key-value cache interface (get/set/delete/clear/has and bulk variants,
TTL expiration) over tag-capable storages.

Usage:
    from cachebridge import create_cache

    cache = create_cache()
    cache.set("key", "value", ttl=3600)
    value = cache.get("key")
"""

__version__ = "1.0.0"

from .errors import (
    CacheBridgeError,
    CacheError,
    CacheOperationError,
    ConfigurationError,
    InvalidArgumentError,
)
from .facade import CACHE_NAMESPACE, CacheFacade
from .factory import (
    close_all_caches,
    create_cache,
    create_storage,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from .storage import MISSING, MemoryStorage, Storage
from .ttl import expire

__all__ = [
    # Facade
    "CacheFacade",
    "CACHE_NAMESPACE",
    "expire",
    # Factory functions
    "create_cache",
    "create_storage",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Storages
    "Storage",
    "MemoryStorage",
    "MISSING",
    # Errors
    "CacheBridgeError",
    "CacheError",
    "CacheOperationError",
    "ConfigurationError",
    "InvalidArgumentError",
]
