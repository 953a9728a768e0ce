"""Tiered lookup cache and its storage backends."""

from __future__ import annotations

from .models import CacheEntry, CacheIndexRecord, CacheStats
from .storage import JSONFileStore, KeyValueStore, MemoryStore
from .tiered_cache import TieredCache

__all__ = [
    "CacheEntry",
    "CacheIndexRecord",
    "CacheStats",
    "JSONFileStore",
    "KeyValueStore",
    "MemoryStore",
    "TieredCache",
]
