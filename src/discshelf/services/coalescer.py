"""Request coalescing for asynchronous lookups.

Concurrent callers asking for the same key are joined onto one in-flight
operation instead of each starting their own network call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

if TYPE_CHECKING:
    from discshelf.services.cache import TieredCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer:
    """Share one in-flight operation between concurrent callers of a key.

    Every caller of ``run`` for a key that is already in flight receives the
    same result or the same exception. Bookkeeping for the key is dropped
    as soon as the operation settles, so the next call starts fresh.

    There is no timeout: an operation that never settles holds its key
    until it does. Wrap ``operation`` in ``asyncio.wait_for`` if a bound
    is needed.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[Any]] = {}

    @property
    def pending_count(self) -> int:
        """Number of keys with an operation in flight."""
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` for ``key`` or join the one already running.

        Args:
            key: Request identity
            operation: Zero-argument coroutine function producing the result

        Returns:
            The operation's result
        """
        task = self._pending.get(key)
        if task is not None:
            logger.debug("Joining in-flight request for '%s'", key)
        else:
            task = asyncio.ensure_future(self._execute(key, operation))
            self._pending[key] = task

        # Shielded so one cancelled caller does not cancel the shared work
        return await asyncio.shield(task)

    async def _execute(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]

    async def run_cached(
        self,
        cache: TieredCache,
        namespace: str,
        key: str,
        operation: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Check the cache, then join or start the fetch and cache its result.

        A burst of concurrent calls for an uncached key results in exactly
        one invocation of ``operation``.
        """
        cached = cache.get(namespace, key)
        if cached is not None:
            return cached

        async def fetch_and_store() -> T:
            value = await operation()
            cache.set(namespace, key, value, ttl)
            return value

        return await self.run(f"{namespace}:{key}", fetch_and_store)
