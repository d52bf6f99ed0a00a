"""
Tests for MonitoringScheduler - immediate first cycle, periodic cycles,
non-overlapping runs and out-of-band triggers.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from target_monitor.services.monitoring_scheduler import MonitoringScheduler


def make_orchestrator(delay: float = 0):
    orchestrator = MagicMock()
    orchestrator.generation = 0
    state = {"active": 0, "peak": 0}

    async def run_and_publish():
        state["active"] += 1
        state["peak"] = max(state["peak"], state["active"])
        await asyncio.sleep(delay)
        state["active"] -= 1
        return None

    orchestrator.run_and_publish = AsyncMock(side_effect=run_and_publish)
    return orchestrator, state


class TestMonitoringScheduler:
    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self):
        orchestrator, _ = make_orchestrator()
        scheduler = MonitoringScheduler(orchestrator, interval_seconds=3600)

        await scheduler.start_monitoring()
        await asyncio.sleep(0.05)
        await scheduler.stop_monitoring()

        assert orchestrator.run_and_publish.await_count == 1
        assert scheduler.get_monitoring_status()["cycles_completed"] == 1
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_cycles_repeat_on_interval(self):
        orchestrator, _ = make_orchestrator()
        scheduler = MonitoringScheduler(orchestrator, interval_seconds=0.02)

        await scheduler.start_monitoring()
        await asyncio.sleep(0.15)
        await scheduler.stop_monitoring()

        assert orchestrator.run_and_publish.await_count >= 3

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_loop(self):
        orchestrator, _ = make_orchestrator()
        scheduler = MonitoringScheduler(orchestrator, interval_seconds=3600)

        await scheduler.start_monitoring()
        await scheduler.start_monitoring()
        await asyncio.sleep(0.05)
        await scheduler.stop_monitoring()

        assert orchestrator.run_and_publish.await_count == 1

    @pytest.mark.asyncio
    async def test_triggered_cycle_does_not_overlap(self):
        orchestrator, state = make_orchestrator(delay=0.05)
        scheduler = MonitoringScheduler(orchestrator, interval_seconds=3600)

        await scheduler.start_monitoring()
        await asyncio.sleep(0.01)
        task = scheduler.trigger_immediate_cycle()
        await task
        await scheduler.stop_monitoring()

        assert orchestrator.run_and_publish.await_count == 2
        assert state["peak"] == 1

    def test_trigger_when_stopped_is_noop(self):
        orchestrator, _ = make_orchestrator()
        scheduler = MonitoringScheduler(orchestrator)

        assert scheduler.trigger_immediate_cycle() is None
        orchestrator.run_and_publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_cycle_keeps_loop_alive(self):
        orchestrator = MagicMock()
        orchestrator.generation = 0
        calls = []

        async def run_and_publish():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")

        orchestrator.run_and_publish = AsyncMock(side_effect=run_and_publish)
        scheduler = MonitoringScheduler(orchestrator, interval_seconds=0.02)

        await scheduler.start_monitoring()
        await asyncio.sleep(0.07)
        await scheduler.stop_monitoring()

        assert orchestrator.run_and_publish.await_count >= 2
        assert scheduler.get_monitoring_status()["last_cycle_error"] is None
