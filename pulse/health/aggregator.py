"""Aggregator — fans probes out across all registered subsystems.

Probes run concurrently in a thread pool, so one slow subsystem only delays
its own slot in the snapshot. The verdict follows a fixed precedence:

  1. no subsystems                       → unhealthy
  2. more than half unhealthy            → unhealthy
  3. any unhealthy or degraded           → degraded
  4. otherwise                           → healthy

Exactly half unhealthy is degraded, not unhealthy.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime

from .engine import ProbeEngine
from .models import HealthSummary, ProbeResult, Status, SystemSnapshot, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ProcessInfo:
    """Process metadata stamped on every snapshot."""

    version: str = "1.0.0"
    environment: str = "development"
    started_at: float = field(default_factory=time.monotonic)

    def uptime(self) -> float:
        return time.monotonic() - self.started_at


def determine_overall(results: list[ProbeResult]) -> Status:
    if not results:
        return Status.UNHEALTHY

    unhealthy = sum(1 for r in results if r.status is Status.UNHEALTHY)
    degraded = sum(1 for r in results if r.status is Status.DEGRADED)

    if unhealthy > len(results) * 0.5:
        return Status.UNHEALTHY
    if unhealthy > 0 or degraded > 0:
        return Status.DEGRADED
    return Status.HEALTHY


class Aggregator:
    """Builds SystemSnapshots from concurrent probes."""

    def __init__(
        self,
        engine: ProbeEngine,
        process: ProcessInfo | None = None,
        max_workers: int = 8,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.engine = engine
        self.process = process if process is not None else ProcessInfo()
        self._now = now
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="health-probe",
        )
        self._latest: SystemSnapshot | None = None
        self._lock = threading.Lock()

    def probe_many(self, names: Iterable[str]) -> list[ProbeResult]:
        """Probe ``names`` concurrently; results keep the input order."""
        names = list(names)
        if len(names) <= 1:
            return [self.engine.probe(n) for n in names]
        return list(self._executor.map(self.engine.probe, names))

    def snapshot(self) -> SystemSnapshot:
        """Probe every registered subsystem and fold the results."""
        results = self.probe_many(self.engine.registry.list_names())
        snap = SystemSnapshot(
            overall=determine_overall(results),
            services=results,
            timestamp=self._now(),
            uptime_s=self.process.uptime(),
            version=self.process.version,
            environment=self.process.environment,
        )
        with self._lock:
            self._latest = snap
        logger.debug(
            "Snapshot: %s (%d services)", snap.overall.value, len(results),
        )
        return snap

    def latest(self) -> SystemSnapshot | None:
        """The most recent snapshot, without probing."""
        with self._lock:
            return self._latest

    def summary(self) -> HealthSummary:
        snap = self.snapshot()
        healthy = sum(1 for r in snap.services if r.status is Status.HEALTHY)
        issues = [
            f"{r.subsystem}: {r.error or 'Service unhealthy'}"
            for r in snap.services
            if r.status is Status.UNHEALTHY
        ]
        return HealthSummary(
            status=snap.overall,
            healthy_services=healthy,
            total_services=len(snap.services),
            critical_issues=issues,
        )

    def check_critical(self, names: Iterable[str]) -> bool:
        """True iff every named subsystem is individually healthy."""
        results = self.probe_many(names)
        failing = [r.subsystem for r in results if r.status is not Status.HEALTHY]
        if failing:
            logger.warning("Critical services not healthy: %s", ", ".join(failing))
        return not failing

    def close(self) -> None:
        self._executor.shutdown(wait=False)
