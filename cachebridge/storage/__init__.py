"""
cachebridge - Storages

Exports the storage interface and the storages that are always available.

Redis storage is lazy-loaded via factory.py to avoid a hard dependency.
"""

from .interface import MISSING, Storage
from .memory import MemoryStorage

__all__ = [
    "MISSING",
    "Storage",
    "MemoryStorage",
]
