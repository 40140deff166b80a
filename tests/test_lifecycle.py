"""
Lifecycle primitives: hook calling and timeouts.
"""

import asyncio

import pytest

from servicebay.lifecycle import ContainerPhase, ServiceState, TeardownOrder, call_hook


class TestCallHook:

    @pytest.mark.asyncio
    async def test_sync_callable(self):
        assert await call_hook(lambda: 5) == 5

    @pytest.mark.asyncio
    async def test_async_callable(self):
        async def compute():
            await asyncio.sleep(0)
            return "done"

        assert await call_hook(compute) == "done"

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def hang():
            await asyncio.sleep(3600)

        with pytest.raises(asyncio.TimeoutError):
            await call_hook(hang, timeout=0.01)

    @pytest.mark.asyncio
    async def test_timeout_ignored_for_sync(self):
        assert await call_hook(lambda: "sync", timeout=0.01) == "sync"

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        def fail():
            raise KeyError("x")

        with pytest.raises(KeyError):
            await call_hook(fail)


class TestEnums:

    def test_service_states_in_order(self):
        assert [s.value for s in ServiceState] == [
            "discovered", "injected", "post_constructed", "started", "pre_destroyed", "stopped",
        ]

    def test_teardown_order_from_string(self):
        assert TeardownOrder("discovery") is TeardownOrder.DISCOVERY
        with pytest.raises(ValueError):
            TeardownOrder("sideways")

    def test_phases(self):
        assert ContainerPhase("ready") is ContainerPhase.READY
