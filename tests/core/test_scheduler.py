"""Tests for the poll scheduler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from autorip.core.scheduler import PollScheduler
from autorip.core.tracker import OperationGate


class TestTick:
    """Test single ticks against the gate."""

    @pytest.mark.asyncio
    async def test_tick_runs_cycle_and_releases_gate(self):
        gate = OperationGate()
        cycle = AsyncMock()
        scheduler = PollScheduler(1.0, gate, cycle)

        assert await scheduler.tick() is True

        cycle.assert_awaited_once()
        assert not gate.busy

    @pytest.mark.asyncio
    async def test_tick_skipped_while_scanning(self):
        gate = OperationGate()
        gate.try_begin_scan()
        cycle = AsyncMock()
        scheduler = PollScheduler(1.0, gate, cycle)

        assert await scheduler.tick() is False
        cycle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_tick_skipped_while_processing(self):
        gate = OperationGate()
        gate.try_begin_processing()
        cycle = AsyncMock()
        scheduler = PollScheduler(1.0, gate, cycle)

        assert await scheduler.tick() is False
        cycle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cycle_error_is_logged_and_gate_released(self, caplog):
        gate = OperationGate()
        cycle = AsyncMock(side_effect=RuntimeError("boom"))
        scheduler = PollScheduler(1.0, gate, cycle)

        assert await scheduler.tick() is True

        assert not gate.busy
        assert "Error during poll" in caplog.text


class TestTimer:
    """Test the periodic timer."""

    @pytest.mark.asyncio
    async def test_timer_fires_repeatedly(self):
        gate = OperationGate()
        cycle = AsyncMock()
        scheduler = PollScheduler(0.01, gate, cycle)

        scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.1)
        scheduler.stop()
        await scheduler.wait_idle()

        assert cycle.await_count >= 2
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_first_tick_waits_one_interval(self):
        cycle = AsyncMock()
        scheduler = PollScheduler(10.0, OperationGate(), cycle)

        scheduler.start()
        await asyncio.sleep(0.05)
        scheduler.stop()

        cycle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ticks_dropped_while_cycle_in_flight(self):
        gate = OperationGate()
        release = asyncio.Event()
        calls = 0

        async def slow_cycle():
            nonlocal calls
            calls += 1
            await release.wait()

        scheduler = PollScheduler(0.01, gate, slow_cycle)
        scheduler.start()
        await asyncio.sleep(0.1)

        # Many intervals elapsed, still only the first cycle
        assert calls == 1
        assert gate.scan_active

        scheduler.stop()
        release.set()
        await scheduler.wait_idle()

        assert calls == 1
        assert not gate.busy

    @pytest.mark.asyncio
    async def test_stop_does_not_cancel_in_flight_cycle(self):
        gate = OperationGate()
        release = asyncio.Event()
        finished = asyncio.Event()

        async def slow_cycle():
            await release.wait()
            finished.set()

        scheduler = PollScheduler(0.01, gate, slow_cycle)
        scheduler.start()
        while not gate.scan_active:
            await asyncio.sleep(0.005)

        scheduler.stop()
        release.set()
        await scheduler.wait_idle()

        assert finished.is_set()
