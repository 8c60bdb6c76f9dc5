"""HealthMonitor — the surface the HTTP layer and schedulers talk to.

Wires a ServiceRegistry, HealthCache, ProbeEngine and Aggregator together.
Every piece is injected so tests and the server lifespan each build their
own instance; nothing here is created at import time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from .aggregator import Aggregator, ProcessInfo
from .cache import DEFAULT_TTL_MS, HealthCache
from .capability import Monitorable
from .engine import ProbeEngine
from .metrics import PerformanceMetrics, compute_metrics
from .models import HealthSummary, ProbeResult, SystemSnapshot, utcnow
from .registry import ServiceRegistry

logger = logging.getLogger(__name__)


class HealthMonitor:
    def __init__(
        self,
        registry: ServiceRegistry | None = None,
        cache: HealthCache | None = None,
        process: ProcessInfo | None = None,
        probe_timeout_ms: int | None = None,
        max_workers: int = 8,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.cache = cache if cache is not None else HealthCache(DEFAULT_TTL_MS)
        self.registry = registry if registry is not None else ServiceRegistry(cache=self.cache)
        self.engine = ProbeEngine(self.registry, self.cache, timeout_ms=probe_timeout_ms, now=now)
        self.aggregator = Aggregator(self.engine, process, max_workers=max_workers, now=now)

    # ── Registration ─────────────────────────────────────────────────────

    def register_service(self, name: str, service: Monitorable) -> None:
        self.registry.register(name, service)

    def unregister_service(self, name: str) -> None:
        self.registry.unregister(name)
        # Registry may have been built without a cache reference.
        self.cache.evict(name)

    def get_registered_services(self) -> list[str]:
        return self.registry.list_names()

    # ── Checks ───────────────────────────────────────────────────────────

    def check_service_health(self, name: str) -> ProbeResult:
        return self.engine.probe(name)

    def check_all_services(self) -> SystemSnapshot:
        return self.aggregator.snapshot()

    def get_health_summary(self) -> HealthSummary:
        return self.aggregator.summary()

    def check_critical_services(self, names: Iterable[str]) -> bool:
        return self.aggregator.check_critical(names)

    def get_performance_metrics(self) -> PerformanceMetrics:
        """Metrics over the latest snapshot; takes one if none exists yet."""
        snap = self.aggregator.latest() or self.aggregator.snapshot()
        return compute_metrics(snap.services)

    # ── Cache control ────────────────────────────────────────────────────

    def clear_cache(self) -> None:
        self.cache.clear()

    def set_cache_timeout(self, timeout_ms: int) -> None:
        self.cache.set_ttl(timeout_ms)

    def close(self) -> None:
        self.aggregator.close()
