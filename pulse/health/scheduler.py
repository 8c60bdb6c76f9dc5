"""Health refresh scheduler — snapshots all services at a fixed interval.

Keeps the probe cache warm so HTTP health endpoints answer from memory, and
pushes every snapshot to an optional callback (the SSE broadcaster).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .models import Status, SystemSnapshot
from .monitor import HealthMonitor

logger = logging.getLogger(__name__)


class HealthScheduler:
    """Periodically refreshes the system snapshot.

    Snapshots run in the default executor so capability calls never block
    the event loop.
    """

    def __init__(
        self,
        monitor: HealthMonitor,
        interval: float = 30.0,
        on_snapshot: Callable[[SystemSnapshot], Any] | None = None,
    ) -> None:
        self.monitor = monitor
        self.interval = interval
        self.on_snapshot = on_snapshot  # SSE broadcast callback
        self.last_status: Status | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        if self.interval <= 0:
            logger.info("Health refresh disabled — scheduler idle")
            return
        self._running = True
        self._task = asyncio.create_task(self._refresh_loop(), name="health-refresh")
        logger.info("Health scheduler started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("Health scheduler stopped")

    async def run_now(self) -> SystemSnapshot:
        """Take a snapshot immediately (manual trigger / startup)."""
        loop = asyncio.get_running_loop()
        snap = await loop.run_in_executor(None, self.monitor.check_all_services)
        self._record(snap)
        return snap

    def _record(self, snap: SystemSnapshot) -> None:
        if self.last_status is not None and snap.overall is not self.last_status:
            log = logger.warning if snap.overall is not Status.HEALTHY else logger.info
            log(
                "Overall health changed: %s → %s",
                self.last_status.value, snap.overall.value,
            )
        self.last_status = snap.overall

        if self.on_snapshot:
            try:
                self.on_snapshot(snap)
            except Exception:
                logger.exception("Snapshot callback error")

    async def _refresh_loop(self) -> None:
        while self._running:
            try:
                await self.run_now()
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Health refresh error")
                await asyncio.sleep(min(self.interval, 60))
