"""
cachebridge - Error Types

Defines the exception hierarchy raised by the cache facade, its storages
and the configuration layer. All exceptions inherit from CacheBridgeError.

Propagation policy:
- InvalidArgumentError is raised before any storage call and always propagates
- CacheOperationError wraps read-path storage failures and invalid TTL values
- Write-path storage failures (set/delete/clear) never surface as exceptions;
  the facade logs a warning and returns False instead
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Stable error codes for callers that report cache failures upstream.
    """

    # Input validation errors
    INVALID_KEY = "INVALID_KEY"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INVALID_TTL = "INVALID_TTL"

    # Cache errors
    CACHE_FAILURE = "CACHE_FAILURE"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CacheBridgeError(Exception):
    """Base exception for all cachebridge errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured reporting."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CacheBridgeError):
    """Raised when configuration is invalid or a backend is unavailable."""

    error_code = ErrorCode.CONFIGURATION_ERROR


class CacheError(CacheBridgeError):
    """Base exception for cache-related errors."""

    error_code = ErrorCode.CACHE_FAILURE


class InvalidArgumentError(CacheError, ValueError):
    """Raised when a key or a bulk input has the wrong shape."""

    error_code = ErrorCode.INVALID_ARGUMENT


class CacheOperationError(CacheError):
    """Raised when a cache read fails or a TTL cannot be interpreted."""

    pass


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract the appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        ErrorCode for the exception
    """
    if isinstance(error, CacheBridgeError):
        return error.error_code

    return ErrorCode.INTERNAL_ERROR
