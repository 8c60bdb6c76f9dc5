"""Probe engine — evaluates one subsystem and memoises the result.

A probe calls ``is_configured()`` then ``is_healthy()`` on the bound
subsystem, times the calls, derives a Status and caches the ProbeResult.
Failures (raised errors, timeouts, unknown names) come back as UNHEALTHY
results; ``probe`` never raises.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .cache import HealthCache
from .capability import DescribesCapabilities, DescribesConfiguration, Monitorable
from .models import ProbeResult, Status, utcnow
from .registry import ServiceRegistry

logger = logging.getLogger(__name__)

NOT_REGISTERED = "Service not registered"


class ProbeTimeoutError(Exception):
    """Capability calls did not return within the probe timeout."""


def derive_status(configured: bool, healthy: bool) -> Status:
    """Map capability answers to a Status (raising is handled by the caller)."""
    if not configured:
        return Status.UNHEALTHY
    if not healthy:
        return Status.DEGRADED
    return Status.HEALTHY


def _evaluate(service: Monitorable) -> tuple[bool, bool]:
    configured = bool(service.is_configured())
    healthy = bool(service.is_healthy())
    return configured, healthy


def _elapsed_us(t0: int) -> int:
    return (time.perf_counter_ns() - t0) // 1000


class ProbeEngine:
    """Runs probes against a ServiceRegistry, backed by a HealthCache."""

    def __init__(
        self,
        registry: ServiceRegistry,
        cache: HealthCache,
        timeout_ms: int | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        if timeout_ms is not None and timeout_ms <= 0:
            raise ValueError(f"Probe timeout must be positive, got {timeout_ms}")
        self.registry = registry
        self.cache = cache
        self.timeout_ms = timeout_ms
        self._now = now
        self._inflight: dict[str, threading.Thread] = {}
        self._inflight_lock = threading.Lock()

    def probe(self, name: str) -> ProbeResult:
        """Return the health of ``name``, from cache while it is fresh."""
        service = self.registry.get(name)
        if service is None:
            return ProbeResult(
                subsystem=name, status=Status.UNHEALTHY, configured=False,
                checked_at=self._now(), error=NOT_REGISTERED,
            )

        cached = self.cache.get(name)
        if cached is not None:
            return cached

        result = self._execute(name, service)
        self.cache.put(name, result)
        return result

    def _execute(self, name: str, service: Monitorable) -> ProbeResult:
        t0 = time.perf_counter_ns()
        try:
            configured, healthy = self._call_capabilities(name, service)
        except Exception as e:
            latency = _elapsed_us(t0)
            message = str(e) or type(e).__name__
            logger.warning("Health probe for '%s' failed: %s", name, message)
            return ProbeResult(
                subsystem=name, status=Status.UNHEALTHY, configured=False,
                checked_at=self._now(), latency_us=latency, error=message,
            )
        latency = _elapsed_us(t0)

        status = derive_status(configured, healthy)
        if status is not Status.HEALTHY:
            logger.info(
                "Service '%s' is %s (configured=%s, healthy=%s)",
                name, status.value, configured, healthy,
            )
        return ProbeResult(
            subsystem=name, status=status, configured=configured,
            checked_at=self._now(), latency_us=latency,
            metadata=self._collect_metadata(name, service),
        )

    def _call_capabilities(self, name: str, service: Monitorable) -> tuple[bool, bool]:
        if self.timeout_ms is None:
            return _evaluate(service)

        # At most one worker per name. A subsystem still stuck from an earlier
        # call gets no new thread until the old one returns.
        with self._inflight_lock:
            stuck = self._inflight.get(name)
            if stuck is not None and stuck.is_alive():
                raise ProbeTimeoutError(
                    f"Previous check still running after {self.timeout_ms}ms timeout"
                )

            outcome: dict[str, Any] = {}

            def _run() -> None:
                try:
                    outcome["value"] = _evaluate(service)
                except Exception as e:
                    outcome["error"] = e
                finally:
                    with self._inflight_lock:
                        if self._inflight.get(name) is threading.current_thread():
                            del self._inflight[name]

            worker = threading.Thread(target=_run, name=f"health-{name}", daemon=True)
            self._inflight[name] = worker
            worker.start()

        worker.join(self.timeout_ms / 1000)
        if worker.is_alive():
            raise ProbeTimeoutError(f"Probe timed out after {self.timeout_ms}ms")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["value"]

    def _collect_metadata(self, name: str, service: Monitorable) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        try:
            if isinstance(service, DescribesConfiguration):
                metadata["configuration"] = service.get_configuration()
            if isinstance(service, DescribesCapabilities):
                metadata["capabilities"] = service.get_capabilities()
        except Exception as e:
            logger.warning("Metadata collection for '%s' failed: %s", name, e)
            metadata["metadata_error"] = str(e) or type(e).__name__
        return metadata
