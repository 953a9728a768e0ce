"""Tiered lookup cache with expiry and global LRU eviction.

Values live in two tiers: a process-local dict of decoded entries in front
of a size-bounded KeyValueStore holding the serialised form. Every
namespace keeps an index of ``{key: {sizeBytes, lastUsedAt}}`` in the store
next to its entries, which drives least-recently-used eviction across all
namespaces.

Storage layout:
    <prefix><namespace>_<key>    -> {"payload": ..., "expiresAt": ...}
    <prefix>_index_<namespace>   -> {key: {"sizeBytes": ..., "lastUsedAt": ...}}
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import orjson
from pydantic import ValidationError

from discshelf.services.cache.models import CacheEntry, CacheIndexRecord, CacheStats
from discshelf.services.cache.storage import KeyValueStore, MemoryStore
from discshelf.shared.constants import BYTES_PER_MB, CacheDefaults, CacheEntryFields
from discshelf.shared.errors import (
    CacheCorruptionError,
    CapacityExceededError,
    DiscShelfError,
    ErrorCode,
    ErrorContext,
)
from discshelf.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _EvictionCandidate:
    namespace: str
    key: str
    size_bytes: int
    last_used_at: float


class TieredCache:
    """Two-level cache with per-item expiry and size-bounded LRU eviction.

    Cache failures never propagate: corrupt entries are dropped and treated
    as misses, and writes the store cannot hold are logged and skipped.

    Args:
        store: Persistent tier; an unbounded MemoryStore when omitted
        prefix: Prefix applied to every storage key
        max_size_bytes: Byte ceiling across all namespaces
        default_ttl: Time-to-live in seconds when ``set`` gets none
        clock: Returns the current time in seconds
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        prefix: str = CacheDefaults.PREFIX,
        max_size_bytes: int = int(CacheDefaults.MAX_SIZE_MB * BYTES_PER_MB),
        default_ttl: float = CacheDefaults.DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store: KeyValueStore = store if store is not None else MemoryStore()
        self.prefix = prefix
        self.max_size_bytes = max_size_bytes
        self.default_ttl = default_ttl
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._evictions = 0

    # Key layout

    def _entry_key(self, namespace: str, key: str) -> str:
        return f"{self.prefix}{namespace}_{key}"

    def _index_key(self, namespace: str) -> str:
        return f"{self.prefix}{CacheDefaults.INDEX_MARKER}{namespace}"

    def _namespaces(self) -> list[str]:
        marker = self._index_key("")
        return [key[len(marker) :] for key in self.store.keys() if key.startswith(marker)]

    # Index handling

    def _load_index(self, namespace: str) -> dict[str, CacheIndexRecord]:
        """Read a namespace index, treating an unreadable one as empty."""
        try:
            raw = self.store.get_item(self._index_key(namespace))
        except DiscShelfError as error:
            log_operation_error(logger, error, "cache_load_index", level=logging.WARNING)
            return {}
        if raw is None:
            return {}

        try:
            data = orjson.loads(raw)
            return {key: CacheIndexRecord.model_validate(record) for key, record in data.items()}
        except (orjson.JSONDecodeError, ValidationError, AttributeError) as e:
            error = CacheCorruptionError(
                ErrorCode.CACHE_CORRUPTED,
                f"Cache index for namespace '{namespace}' is corrupted; rebuilding",
                ErrorContext(operation="cache_load_index", additional_data={"namespace": namespace}),
                original_error=e,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            return {}

    def _save_index(self, namespace: str, index: dict[str, CacheIndexRecord]) -> None:
        index_key = self._index_key(namespace)
        if not index:
            self.store.remove_item(index_key)
            return
        payload = {key: record.model_dump(by_alias=True) for key, record in index.items()}
        self.store.set_item(index_key, orjson.dumps(payload))

    # Public API

    def get(self, namespace: str, key: str) -> Any | None:
        """Return the cached value, or None on a miss.

        A hit refreshes the key's ``lastUsedAt``. Expired and corrupt
        entries are removed and counted as misses.
        """
        storage_key = self._entry_key(namespace, key)
        entry = self._memory.get(storage_key)

        if entry is None:
            entry = self._read_entry(namespace, key)
            if entry is None:
                self._misses += 1
                return None
            self._memory[storage_key] = entry

        now = self._clock()
        if entry.is_expired(now):
            logger.debug("Cache entry expired for '%s' (%s)", key, namespace)
            self.remove(namespace, key)
            self._misses += 1
            return None

        self._touch(namespace, key, entry, now)
        self._hits += 1
        return entry.payload

    def _read_entry(self, namespace: str, key: str) -> CacheEntry | None:
        storage_key = self._entry_key(namespace, key)
        try:
            raw = self.store.get_item(storage_key)
        except DiscShelfError as error:
            log_operation_error(logger, error, "cache_get", level=logging.WARNING)
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as e:
            error = CacheCorruptionError(
                ErrorCode.CACHE_CORRUPTED,
                f"Cache entry for '{key}' is corrupted; removing",
                ErrorContext(
                    operation="cache_get",
                    additional_data={"namespace": namespace, "key": key},
                ),
                original_error=e,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            self.remove(namespace, key)
            return None

        entry.size_bytes = len(raw)
        return entry

    def _touch(self, namespace: str, key: str, entry: CacheEntry, now: float) -> None:
        index = self._load_index(namespace)
        index[key] = CacheIndexRecord(size_bytes=entry.size_bytes, last_used_at=now)
        try:
            self._save_index(namespace, index)
        except DiscShelfError as error:
            log_operation_error(logger, error, "cache_touch", level=logging.WARNING)

    def set(self, namespace: str, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store ``value`` and enforce the byte ceiling.

        Args:
            namespace: Cache namespace (e.g. "upc")
            key: Key within the namespace
            value: JSON-serialisable value
            ttl: Time-to-live in seconds, defaults to ``default_ttl``

        Returns:
            True if the value was stored, False if the write was dropped
        """
        now = self._clock()
        expires_at = now + (self.default_ttl if ttl is None else ttl)
        try:
            raw = orjson.dumps({CacheEntryFields.PAYLOAD: value, CacheEntryFields.EXPIRES_AT: expires_at})
        except TypeError as e:
            logger.warning("Value for '%s' (%s) is not serialisable: %s", key, namespace, e)
            return False

        entry = CacheEntry(payload=value, expires_at=expires_at, size_bytes=len(raw))

        try:
            self._write(namespace, key, raw, entry, now)
        except CapacityExceededError as error:
            log_operation_error(logger, error, "cache_set", level=logging.WARNING)
            self._enforce_size_limit(force=True)
            try:
                self._write(namespace, key, raw, entry, now)
            except DiscShelfError as retry_error:
                log_operation_error(logger, retry_error, "cache_set_retry", level=logging.WARNING)
                return False
        except DiscShelfError as error:
            log_operation_error(logger, error, "cache_set", level=logging.WARNING)
            return False

        self._sets += 1
        self._enforce_size_limit()
        return True

    def _write(self, namespace: str, key: str, raw: bytes, entry: CacheEntry, now: float) -> None:
        storage_key = self._entry_key(namespace, key)
        self.store.set_item(storage_key, raw)
        index = self._load_index(namespace)
        index[key] = CacheIndexRecord(size_bytes=entry.size_bytes, last_used_at=now)
        self._save_index(namespace, index)
        self._memory[storage_key] = entry

    def remove(self, namespace: str, key: str) -> bool:
        """Remove one entry from both tiers. Returns True if it existed."""
        storage_key = self._entry_key(namespace, key)
        existed = self._memory.pop(storage_key, None) is not None
        try:
            existed = self.store.get_item(storage_key) is not None or existed
        except DiscShelfError as error:
            log_operation_error(logger, error, "cache_remove", level=logging.WARNING)
        self.store.remove_item(storage_key)

        index = self._load_index(namespace)
        if index.pop(key, None) is not None:
            existed = True
            try:
                self._save_index(namespace, index)
            except DiscShelfError as error:
                log_operation_error(logger, error, "cache_remove", level=logging.WARNING)
        return existed

    def clear(self, namespace: str | None = None) -> int:
        """Remove one namespace, or every key under the prefix.

        Returns:
            Number of cached items removed
        """
        if namespace is not None:
            index = self._load_index(namespace)
            for key in index:
                storage_key = self._entry_key(namespace, key)
                self.store.remove_item(storage_key)
                self._memory.pop(storage_key, None)
            self.store.remove_item(self._index_key(namespace))
            logger.info("Cleared %d cache entries from namespace '%s'", len(index), namespace)
            return len(index)

        index_marker = self._index_key("")
        removed = 0
        for storage_key in self.store.keys():
            if not storage_key.startswith(self.prefix):
                continue
            self.store.remove_item(storage_key)
            if not storage_key.startswith(index_marker):
                removed += 1
        self._memory.clear()
        logger.info("Cleared %d cache entries", removed)
        return removed

    def _enforce_size_limit(self, *, force: bool = False) -> int:
        """Evict least-recently-used entries across all namespaces.

        Runs after every set. When ``force`` is set (the store rejected a
        write) at least one entry is evicted even if the total is under the
        ceiling.

        Returns:
            Number of entries evicted
        """
        indexes = {namespace: self._load_index(namespace) for namespace in self._namespaces()}
        candidates = [
            _EvictionCandidate(namespace, key, record.size_bytes, record.last_used_at)
            for namespace, index in indexes.items()
            for key, record in index.items()
        ]
        total = sum(candidate.size_bytes for candidate in candidates)
        if not force and total <= self.max_size_bytes:
            return 0

        candidates.sort(key=lambda candidate: candidate.last_used_at)

        evicted = 0
        touched: set[str] = set()
        for candidate in candidates:
            if total <= self.max_size_bytes and not (force and evicted == 0):
                break
            storage_key = self._entry_key(candidate.namespace, candidate.key)
            self.store.remove_item(storage_key)
            self._memory.pop(storage_key, None)
            del indexes[candidate.namespace][candidate.key]
            touched.add(candidate.namespace)
            total -= candidate.size_bytes
            evicted += 1

        for namespace in touched:
            try:
                self._save_index(namespace, indexes[namespace])
            except DiscShelfError as error:
                log_operation_error(logger, error, "cache_evict", level=logging.WARNING)

        self._evictions += evicted
        if evicted:
            logger.info(
                "Evicted %d cache entries (%d bytes remaining, ceiling %d)",
                evicted,
                total,
                self.max_size_bytes,
            )
        return evicted

    def total_bytes(self) -> int:
        """Sum of indexed entry sizes across all namespaces."""
        return sum(
            record.size_bytes
            for namespace in self._namespaces()
            for record in self._load_index(namespace).values()
        )

    def stats(self) -> CacheStats:
        """Snapshot of counters and size. Does not alter LRU order."""
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            sets=self._sets,
            evictions=self._evictions,
            total_bytes=self.total_bytes(),
            max_bytes=self.max_size_bytes,
        )
