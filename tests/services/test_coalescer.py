"""Tests for RequestCoalescer."""

from __future__ import annotations

import asyncio

import pytest

from discshelf.services.coalescer import RequestCoalescer


class TestRun:
    """Joining concurrent callers."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_invocation(self):
        coalescer = RequestCoalescer()
        calls = 0
        release = asyncio.Event()

        async def operation() -> str:
            nonlocal calls
            calls += 1
            await release.wait()
            return "result"

        callers = [asyncio.create_task(coalescer.run("key", operation)) for _ in range(5)]
        await asyncio.sleep(0)
        assert coalescer.is_pending("key")
        assert coalescer.pending_count == 1

        release.set()
        results = await asyncio.gather(*callers)

        assert results == ["result"] * 5
        assert calls == 1
        assert coalescer.pending_count == 0

    @pytest.mark.asyncio
    async def test_failure_is_shared_and_key_released(self):
        coalescer = RequestCoalescer()
        calls = 0

        async def operation() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            raise ValueError("boom")

        results = await asyncio.gather(
            coalescer.run("key", operation),
            coalescer.run("key", operation),
            return_exceptions=True,
        )

        assert calls == 1
        assert all(isinstance(result, ValueError) for result in results)
        assert not coalescer.is_pending("key")

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        coalescer = RequestCoalescer()
        calls = 0

        async def operation() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert await coalescer.run("key", operation) == 1
        assert await coalescer.run("key", operation) == 2

    @pytest.mark.asyncio
    async def test_different_keys_do_not_join(self):
        coalescer = RequestCoalescer()

        async def make(value: str):
            async def operation() -> str:
                await asyncio.sleep(0)
                return value

            return operation

        first, second = await asyncio.gather(
            coalescer.run("a", await make("A")),
            coalescer.run("b", await make("B")),
        )

        assert (first, second) == ("A", "B")

    @pytest.mark.asyncio
    async def test_hung_operation_holds_its_key(self):
        """Without an enclosing timeout a hung call keeps the slot occupied."""
        coalescer = RequestCoalescer()
        never = asyncio.Event()

        async def operation() -> None:
            await never.wait()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(coalescer.run("slow", operation), timeout=0.01)

        # The caller gave up but the shared operation is still in flight
        assert coalescer.is_pending("slow")
        never.set()
        await asyncio.sleep(0.01)
        assert not coalescer.is_pending("slow")


class TestRunCached:
    """Cache-check, coalesce, then store."""

    @pytest.mark.asyncio
    async def test_miss_fetches_once_and_stores(self, make_cache):
        cache = make_cache()
        coalescer = RequestCoalescer()
        calls = 0

        async def operation() -> dict:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return {"title": "Heat"}

        results = await asyncio.gather(
            *(coalescer.run_cached(cache, "upc", "123", operation) for _ in range(3))
        )

        assert results == [{"title": "Heat"}] * 3
        assert calls == 1
        assert cache.get("upc", "123") == {"title": "Heat"}

    @pytest.mark.asyncio
    async def test_hit_skips_operation(self, make_cache):
        cache = make_cache()
        cache.set("upc", "123", {"title": "Cached"})
        coalescer = RequestCoalescer()

        async def operation() -> dict:
            raise AssertionError("should not be called")

        assert await coalescer.run_cached(cache, "upc", "123", operation) == {"title": "Cached"}

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, make_cache):
        cache = make_cache()
        coalescer = RequestCoalescer()

        async def operation() -> dict:
            raise RuntimeError("offline")

        with pytest.raises(RuntimeError):
            await coalescer.run_cached(cache, "upc", "123", operation)

        assert cache.get("upc", "123") is None
