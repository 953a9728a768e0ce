"""Cache configuration model.

This module contains the cache configuration model for the tiered lookup
cache: key prefix, byte ceiling, default and per-namespace TTLs, and the
optional directory backing the persistent tier.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from discshelf.shared.constants import BYTES_PER_MB, CacheDefaults, CacheNamespace


class CacheSettings(BaseModel):
    """Cache configuration."""

    enabled: bool = Field(default=True, description="Enable caching")
    prefix: str = Field(
        default=CacheDefaults.PREFIX,
        min_length=1,
        description="Prefix applied to every persisted storage key",
    )
    max_size_mb: float = Field(
        default=CacheDefaults.MAX_SIZE_MB,
        gt=0,
        description="Byte ceiling across all namespaces, in megabytes",
    )
    default_ttl: int = Field(
        default=CacheDefaults.DEFAULT_TTL,
        gt=0,
        description="Default time-to-live in seconds",
    )
    namespace_ttls: dict[str, int] = Field(
        default_factory=lambda: {
            CacheNamespace.UPC: CacheDefaults.UPC_TTL,
            CacheNamespace.SEARCH: CacheDefaults.SEARCH_TTL,
            CacheNamespace.DETAILS: CacheDefaults.DETAILS_TTL,
            CacheNamespace.MATCH: CacheDefaults.MATCH_TTL,
        },
        description="Per-namespace time-to-live overrides in seconds",
    )
    directory: str | None = Field(
        default=None,
        description="Directory for the persistent tier (in-memory when unset)",
    )
    quota_mb: float | None = Field(
        default=None,
        gt=0,
        description="Hard quota enforced by the persistent store itself",
    )

    @property
    def max_size_bytes(self) -> int:
        """Byte ceiling used by eviction enforcement."""
        return int(self.max_size_mb * BYTES_PER_MB)

    @property
    def quota_bytes(self) -> int | None:
        """Store quota in bytes, if any."""
        return int(self.quota_mb * BYTES_PER_MB) if self.quota_mb else None

    def ttl_for(self, namespace: str) -> int:
        """Time-to-live in seconds for entries in ``namespace``."""
        return self.namespace_ttls.get(namespace, self.default_ttl)


__all__ = [
    "CacheSettings",
]
