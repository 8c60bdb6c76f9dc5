"""Tests for the background health refresh scheduler."""

from __future__ import annotations

import asyncio
import logging

import pytest

from fakes import FakeService
from pulse.health import HealthMonitor, HealthScheduler, Status, SystemSnapshot


class TestHealthScheduler:
    def test_run_now_pushes_snapshot(self, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        seen: list[SystemSnapshot] = []
        scheduler = HealthScheduler(monitor, interval=60, on_snapshot=seen.append)

        snap = asyncio.run(scheduler.run_now())

        assert snap.overall is Status.HEALTHY
        assert seen == [snap]
        assert scheduler.last_status is Status.HEALTHY
        assert monitor.aggregator.latest() is snap

    def test_callback_errors_are_swallowed(self, monitor: HealthMonitor) -> None:
        def boom(_: SystemSnapshot) -> None:
            raise RuntimeError("subscriber gone")

        scheduler = HealthScheduler(monitor, interval=60, on_snapshot=boom)
        snap = asyncio.run(scheduler.run_now())
        assert snap.overall is Status.UNHEALTHY

    def test_logs_overall_transition(
        self, monitor: HealthMonitor, caplog: pytest.LogCaptureFixture,
    ) -> None:
        svc = FakeService()
        monitor.register_service("chat", svc)
        scheduler = HealthScheduler(monitor, interval=60)

        async def scenario() -> None:
            await scheduler.run_now()
            svc.healthy = False
            monitor.clear_cache()
            await scheduler.run_now()

        with caplog.at_level(logging.WARNING, logger="pulse.health.scheduler"):
            asyncio.run(scenario())

        assert scheduler.last_status is Status.DEGRADED
        assert "healthy → degraded" in caplog.text

    def test_start_and_stop(self, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        seen: list[SystemSnapshot] = []
        scheduler = HealthScheduler(monitor, interval=60, on_snapshot=seen.append)

        async def scenario() -> None:
            await scheduler.start()
            for _ in range(100):
                if seen:
                    break
                await asyncio.sleep(0.01)
            await scheduler.stop()

        asyncio.run(scenario())
        assert len(seen) == 1
        assert scheduler._task is None

    def test_zero_interval_stays_idle(self, monitor: HealthMonitor) -> None:
        scheduler = HealthScheduler(monitor, interval=0)

        async def scenario() -> None:
            await scheduler.start()
            await scheduler.stop()

        asyncio.run(scenario())
        assert scheduler._task is None
