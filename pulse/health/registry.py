"""Service registry — name → monitored subsystem bindings.

One instance per process, created by whoever owns the lifecycle (the API
server lifespan, the CLI) and passed down explicitly.
"""

from __future__ import annotations

import logging
import threading

from .cache import HealthCache
from .capability import Monitorable

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Thread-safe catalogue of monitored subsystems, unique by name.

    When given a cache, unregistering a name also evicts its cached result
    so a later binding under the same name is probed afresh. Registering
    over an existing name leaves the cache alone.
    """

    def __init__(self, cache: HealthCache | None = None) -> None:
        self._services: dict[str, Monitorable] = {}
        self._cache = cache
        self._lock = threading.Lock()

    def register(self, name: str, service: Monitorable) -> None:
        """Bind ``service`` under ``name``; an existing binding is replaced."""
        if not name:
            raise ValueError("Service name must be a non-empty string")
        if not isinstance(service, Monitorable):
            raise TypeError(
                f"Service {name!r} must implement is_configured() and is_healthy(), "
                f"got {type(service).__name__}"
            )
        with self._lock:
            replaced = name in self._services
            self._services[name] = service
        if replaced:
            logger.info("Service '%s' re-registered for health checks", name)
        else:
            logger.info("Service '%s' registered for health checks", name)

    def unregister(self, name: str) -> bool:
        """Remove the binding. Returns False if ``name`` was not registered."""
        with self._lock:
            removed = self._services.pop(name, None) is not None
        if self._cache is not None:
            self._cache.evict(name)
        if removed:
            logger.info("Service '%s' unregistered from health checks", name)
        return removed

    def get(self, name: str) -> Monitorable | None:
        with self._lock:
            return self._services.get(name)

    def list_names(self) -> list[str]:
        with self._lock:
            return list(self._services)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._services

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)
