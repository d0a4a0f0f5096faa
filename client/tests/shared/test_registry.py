"""Tests for shared/registry.py."""

import asyncio

import pytest

from shared.registry import InFlightRegistry


class TestInFlightRegistry:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_operation(self):
        """Callers for the same key attach to the first caller's task."""
        registry: InFlightRegistry[str] = InFlightRegistry("test")
        release = asyncio.Event()
        calls = 0

        async def operation() -> str:
            nonlocal calls
            calls += 1
            await release.wait()
            return "done"

        first = asyncio.ensure_future(registry.run("key", operation))
        second = asyncio.ensure_future(registry.run("key", operation))
        await asyncio.sleep(0)
        assert registry.is_pending("key")

        release.set()
        results = await asyncio.gather(first, second)

        assert results == ["done", "done"]
        assert calls == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_different_keys_run_separately(self):
        registry: InFlightRegistry[str] = InFlightRegistry("test")

        async def operation(value: str) -> str:
            await asyncio.sleep(0)
            return value

        results = await asyncio.gather(
            registry.run("a", lambda: operation("a")),
            registry.run("b", lambda: operation("b")),
        )

        assert results == ["a", "b"]

    @pytest.mark.asyncio
    async def test_next_call_after_completion_starts_fresh(self):
        registry: InFlightRegistry[int] = InFlightRegistry("test")
        calls = 0

        async def operation() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert await registry.run("key", operation) == 1
        assert await registry.run("key", operation) == 2

    @pytest.mark.asyncio
    async def test_failure_is_shared_and_entry_dropped(self):
        registry: InFlightRegistry[None] = InFlightRegistry("test")

        async def operation() -> None:
            await asyncio.sleep(0)
            raise ValueError("boom")

        results = await asyncio.gather(
            registry.run("key", operation),
            registry.run("key", operation),
            return_exceptions=True,
        )

        assert all(isinstance(r, ValueError) for r in results)
        assert not registry.is_pending("key")

    @pytest.mark.asyncio
    async def test_cancelling_a_waiter_keeps_operation_running(self):
        """Waiters are shielded from each other's cancellation."""
        registry: InFlightRegistry[str] = InFlightRegistry("test")
        release = asyncio.Event()

        async def operation() -> str:
            await release.wait()
            return "done"

        first = asyncio.ensure_future(registry.run("key", operation))
        second = asyncio.ensure_future(registry.run("key", operation))
        await asyncio.sleep(0)

        first.cancel()
        await asyncio.sleep(0)
        release.set()

        assert await second == "done"
        assert first.cancelled()

    @pytest.mark.asyncio
    async def test_cancel_abandons_operation(self):
        registry: InFlightRegistry[str] = InFlightRegistry("test")
        never = asyncio.Event()

        async def operation() -> str:
            await never.wait()
            return "unreachable"

        waiter = asyncio.ensure_future(registry.run("key", operation))
        await asyncio.sleep(0)

        assert registry.cancel("key") is True
        assert registry.cancel("key") is False
        with pytest.raises(asyncio.CancelledError):
            await waiter

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        registry: InFlightRegistry[str] = InFlightRegistry("test")
        never = asyncio.Event()

        async def operation() -> str:
            await never.wait()
            return "unreachable"

        waiters = [
            asyncio.ensure_future(registry.run(key, operation)) for key in ("a", "b")
        ]
        await asyncio.sleep(0)

        assert registry.cancel_all() == 2
        results = await asyncio.gather(*waiters, return_exceptions=True)
        assert all(isinstance(r, asyncio.CancelledError) for r in results)
        assert len(registry) == 0
