"""
cachebridge - Storage Interface

Defines the abstract interface every tag-capable storage must implement.
The facade talks to storages only through these methods.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Final


class _Missing:
    """Sentinel type for entries that are absent or expired."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class Storage(ABC):
    """
    Abstract base class for tag-capable cache storages.

    Unlike the facade, storages raise on I/O or corruption failures;
    it is up to the caller to decide whether to propagate or degrade.
    """

    @abstractmethod
    def load(self, key: str) -> Any:
        """
        Load a value.

        Args:
            key: Cache key

        Returns:
            Stored value, or MISSING if absent or expired
        """
        pass

    @abstractmethod
    def save(
        self,
        key: str,
        value: Any,
        *,
        expire: datetime | None = None,
        sliding: bool = False,
        tags: Iterable[str] = (),
    ) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store
            expire: Absolute expiration time (None = never expires)
            sliding: If True, every successful load pushes the expiration
                forward by the interval between the write and `expire`
            tags: Tags used by clean() for bulk invalidation
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def bulk_load(self, keys: Sequence[str]) -> dict[str, Any]:
        """
        Load several values at once.

        Returns:
            Mapping with every requested key, absent ones mapped to MISSING
        """
        pass

    @abstractmethod
    def clean(self, *, tags: Iterable[str]) -> None:
        """Remove every entry saved with any of the given tags."""
        pass

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """
        Get storage statistics.

        Returns:
            Dictionary with storage statistics (hits, misses, size, etc.)
        """
        pass

    def close(self) -> None:
        """Release resources held by the storage."""
        return None
