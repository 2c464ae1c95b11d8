"""
cachebridge - Cache Factory

Canonical factory for building storages and cache facades from configuration.

Key points:
- Select the storage with CACHE_BACKEND=memory|redis (memory by default)
- When redis is selected, the redis client must be installed and REDIS_URL set
- Facades are kept in a named registry so application code can share them

Examples:
    from cachebridge.factory import create_cache, get_cache

    # Uses env-configured backend (memory by default)
    cache = create_cache()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from cachebridge.config import CacheBackend, CacheConfig
    cfg = CacheConfig(backend=CacheBackend.MEMORY, max_size=100, namespace="Sessions")
    sessions = create_cache(cfg, name="sessions")
"""

from __future__ import annotations

import logging

from .config import CacheBackend, CacheConfig, get_config
from .errors import ConfigurationError
from .facade import CacheFacade
from .storage.interface import Storage
from .storage.memory import MemoryStorage

logger = logging.getLogger(__name__)

# Global facade registry
_cache_instances: dict[str, CacheFacade] = {}


def _create_memory_storage(config: CacheConfig) -> Storage:
    """Internal helper to construct a memory storage."""
    return MemoryStorage(max_size=config.max_size)


def _create_redis_storage(config: CacheConfig) -> Storage:
    """Internal helper to construct a redis storage with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    # Lazy import to avoid hard dependency when memory storage is used
    try:
        from .storage.redis import RedisStorage
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.0' or add to dependencies.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisStorage(
        redis_url=config.redis_url,
        prefix=config.key_prefix,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_storage(config: CacheConfig) -> Storage:
    """
    Build the storage selected by configuration.

    Raises:
        ConfigurationError: If the backend is unknown or unavailable
    """
    if config.backend == CacheBackend.MEMORY:
        return _create_memory_storage(config)
    if config.backend == CacheBackend.REDIS:
        return _create_redis_storage(config)

    raise ConfigurationError(
        f"Unknown cache backend: {config.backend}",
        details={"backend": str(config.backend), "supported": ["memory", "redis"]},
    )


def create_cache(
    config: CacheConfig | None = None,
    name: str = "default",
) -> CacheFacade:
    """
    Create a cache facade based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Instance name (for multiple caches)

    Returns:
        Configured CacheFacade; an existing instance if name is already registered

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    if name in _cache_instances:
        logger.debug("Returning existing cache instance: %s", name)
        return _cache_instances[name]

    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache instance '%s' with backend: %s",
        name,
        config.backend.value,
        extra={"cache_name": name, "backend": config.backend.value, "namespace": config.namespace},
    )

    try:
        cache = CacheFacade(create_storage(config), namespace=config.namespace)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cache instance '%s': %s",
            name,
            e,
            extra={"cache_name": name, "backend": config.backend.value, "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache instance '{name}': {e}",
            details={"cache_name": name, "backend": config.backend.value, "error": str(e)},
        ) from e

    _cache_instances[name] = cache
    return cache


def get_cache(name: str = "default") -> CacheFacade:
    """
    Get a cache instance by name, creating it from global config if needed.
    """
    if name not in _cache_instances:
        logger.debug("Cache instance '%s' not found, creating new instance", name)
        return create_cache(name=name)

    return _cache_instances[name]


def close_all_caches() -> None:
    """
    Close the storages of all registered caches and empty the registry.

    Close failures are logged; remaining caches are still closed.
    """
    if not _cache_instances:
        logger.debug("No cache instances to close")
        return

    logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            cache.storage.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()


def reset_cache_factory() -> None:
    """
    Drop all instance references without closing them.

    Warning: Only use this in testing contexts.
    """
    count = len(_cache_instances)
    _cache_instances.clear()
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def list_cache_instances() -> list[str]:
    """List all registered cache instance names."""
    return list(_cache_instances.keys())
