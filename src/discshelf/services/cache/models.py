"""Cache data models.

CacheEntry is the in-memory form of a persisted item; CacheIndexRecord is
the LRU bookkeeping kept per namespace; CacheStats is a read-only snapshot
of the cache counters.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from discshelf.shared.constants import BYTES_PER_MB


class CacheEntry(BaseModel):
    """A cached value with its expiry and serialised size.

    Only ``payload`` and ``expiresAt`` are persisted; ``size_bytes`` is the
    byte length of that persisted form.
    """

    model_config = ConfigDict(populate_by_name=True)

    payload: Any = Field(..., description="The cached JSON-serialisable value")
    expires_at: float = Field(..., alias="expiresAt", description="Expiry as a Unix timestamp")
    size_bytes: int = Field(default=0, ge=0, alias="sizeBytes", description="Serialised size")

    def is_expired(self, now: float) -> bool:
        """True once ``now`` is strictly past the expiry time."""
        return now > self.expires_at


class CacheIndexRecord(BaseModel):
    """LRU metadata for one key in a namespace index."""

    model_config = ConfigDict(populate_by_name=True)

    size_bytes: int = Field(..., ge=0, alias="sizeBytes")
    last_used_at: float = Field(..., alias="lastUsedAt")


class CacheStats(BaseModel):
    """Snapshot of cache counters and size."""

    model_config = ConfigDict(frozen=True)

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0
    total_bytes: int = 0
    max_bytes: int = 0

    @property
    def total_mb(self) -> float:
        return round(self.total_bytes / BYTES_PER_MB, 2)

    @property
    def max_mb(self) -> float:
        return round(self.max_bytes / BYTES_PER_MB, 2)

    @property
    def hit_rate(self) -> float:
        """Hits as a percentage of all reads."""
        reads = self.hits + self.misses
        return (self.hits / reads * 100) if reads else 0.0
