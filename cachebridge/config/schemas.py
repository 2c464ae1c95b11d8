"""
cachebridge - Configuration Schemas

Typed configuration models using Pydantic for validation.
All configuration comes from environment variables (see loader.py).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..facade import CACHE_NAMESPACE


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported storage backends."""

    MEMORY = "memory"
    REDIS = "redis"  # Requires the redis client


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Storage backend to use")
    namespace: str = Field(
        default=CACHE_NAMESPACE,
        min_length=1,
        description="Tag attached to every entry; clear() invalidates by it",
    )
    max_size: int = Field(default=1000, ge=1, description="Max entries (memory backend)")
    key_prefix: str = Field(default="cachebridge", min_length=1, description="Redis key prefix")

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, validate_default=True, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == CacheBackend.REDIS and not v:
            raise ValueError("redis_url is required when cache backend is 'redis'")
        return v


class BridgeConfig(BaseModel):
    """Root configuration for cachebridge."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)
