"""
cachebridge - TTL Normalization

Converts the TTL shapes accepted by the facade into the single form the
storages understand: an absolute expiration datetime, or None for entries
that never expire.
"""

from datetime import datetime, timedelta, timezone
from typing import Union

from .errors import CacheOperationError, ErrorCode

TTL = Union[None, int, timedelta, datetime]


def expire(ttl: TTL, now: datetime | None = None) -> datetime | None:
    """
    Normalize a TTL into an absolute expiration time.

    Args:
        ttl: None or 0 (never expires), seconds as int, a timedelta,
            or an absolute datetime (returned unchanged)
        now: Reference instant, defaults to the current UTC time

    Returns:
        Expiration datetime, or None for no expiration

    Raises:
        CacheOperationError: If ttl has any other shape
    """
    # bool is an int subclass but never a meaningful TTL
    if ttl is None or (type(ttl) is int and ttl == 0):
        return None

    if isinstance(ttl, datetime):
        return ttl

    if now is None:
        now = datetime.now(timezone.utc)

    if type(ttl) is int:
        return now + timedelta(seconds=ttl)
    if isinstance(ttl, timedelta):
        return now + ttl

    raise CacheOperationError(
        "Invalid TTL!",
        details={"ttl_type": type(ttl).__name__},
        error_code=ErrorCode.INVALID_TTL,
    )
