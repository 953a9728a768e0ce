"""Key/value stores backing the persistent cache tier.

Both stores hold raw serialised bytes under flat string keys and may be
given a byte quota. A write that would exceed the quota raises
CapacityExceededError so the cache can evict and retry.
"""

from __future__ import annotations

import base64
import errno
import logging
import os
from pathlib import Path
from typing import Protocol

from discshelf.shared.constants import CacheDefaults
from discshelf.shared.errors import (
    CapacityExceededError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
)

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal storage interface used by TieredCache."""

    def get_item(self, key: str) -> bytes | None: ...

    def set_item(self, key: str, value: bytes) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


def _capacity_error(key: str, needed: int, quota: int, operation: str) -> CapacityExceededError:
    return CapacityExceededError(
        ErrorCode.CACHE_CAPACITY_EXCEEDED,
        f"Store quota of {quota} bytes exceeded writing '{key}'",
        ErrorContext(
            operation=operation,
            additional_data={"key": key, "needed_bytes": needed, "quota_bytes": quota},
        ),
    )


class MemoryStore:
    """Dict-backed store, optionally bounded by a byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self._items: dict[str, bytes] = {}

    @property
    def used_bytes(self) -> int:
        return sum(len(value) for value in self._items.values())

    def get_item(self, key: str) -> bytes | None:
        return self._items.get(key)

    def set_item(self, key: str, value: bytes) -> None:
        if self.quota_bytes is not None:
            needed = self.used_bytes - len(self._items.get(key, b"")) + len(value)
            if needed > self.quota_bytes:
                raise _capacity_error(key, needed, self.quota_bytes, "memory_store_set")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JSONFileStore:
    """Directory-backed store with one file per key.

    File names are the URL-safe base64 form of the key so arbitrary query
    text can be used as a key and recovered by ``keys()``.
    """

    def __init__(self, directory: str | Path, quota_bytes: int | None = None) -> None:
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InfrastructureError(
                ErrorCode.CACHE_WRITE_FAILED,
                f"Cannot create cache directory: {self.directory}",
                ErrorContext(operation="file_store_init", additional_data={"directory": self.directory}),
                original_error=e,
            ) from e

    @staticmethod
    def _encode(key: str) -> str:
        return base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii").rstrip("=")

    @staticmethod
    def _decode(name: str) -> str:
        padding = "=" * (-len(name) % 4)
        return base64.urlsafe_b64decode(name + padding).decode("utf-8")

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._encode(key)}{CacheDefaults.FILE_SUFFIX}"

    @property
    def used_bytes(self) -> int:
        return sum(path.stat().st_size for path in self.directory.glob(f"*{CacheDefaults.FILE_SUFFIX}"))

    def get_item(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise InfrastructureError(
                ErrorCode.CACHE_CORRUPTED,
                f"Failed to read cache file for key '{key}'",
                ErrorContext(operation="file_store_get", additional_data={"key": key}),
                original_error=e,
            ) from e

    def set_item(self, key: str, value: bytes) -> None:
        path = self._path(key)
        if self.quota_bytes is not None:
            existing = path.stat().st_size if path.exists() else 0
            needed = self.used_bytes - existing + len(value)
            if needed > self.quota_bytes:
                raise _capacity_error(key, needed, self.quota_bytes, "file_store_set")

        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            if e.errno == errno.ENOSPC:
                raise _capacity_error(key, len(value), self.quota_bytes or 0, "file_store_set") from e
            raise InfrastructureError(
                ErrorCode.CACHE_WRITE_FAILED,
                f"Failed to write cache file for key '{key}'",
                ErrorContext(operation="file_store_set", additional_data={"key": key}),
                original_error=e,
            ) from e

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        names = []
        for path in self.directory.glob(f"*{CacheDefaults.FILE_SUFFIX}"):
            try:
                names.append(self._decode(path.stem))
            except (ValueError, UnicodeDecodeError):
                logger.warning("Ignoring unrecognised cache file %s", path.name)
        return names
