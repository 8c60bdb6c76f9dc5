"""In-memory TTL cache of per-subsystem probe results."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .models import ProbeResult

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 30_000


class InvalidCacheTimeoutError(ValueError):
    """Raised when a cache TTL is not a non-negative integer of milliseconds."""


def _validate_ttl(ttl_ms: object) -> int:
    if isinstance(ttl_ms, bool) or not isinstance(ttl_ms, int):
        raise InvalidCacheTimeoutError(f"Cache timeout must be an integer, got {ttl_ms!r}")
    if ttl_ms < 0:
        raise InvalidCacheTimeoutError(f"Cache timeout must be >= 0, got {ttl_ms}")
    return ttl_ms


class HealthCache:
    """Stores the latest ProbeResult per subsystem with TTL-based staleness.

    Entries are stamped with a monotonic clock on insertion, so wall-clock
    jumps never resurrect or expire results. A TTL of 0 means every read
    misses.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_ms = _validate_ttl(ttl_ms)
        self._clock = clock
        self._entries: dict[str, tuple[ProbeResult, float]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def set_ttl(self, ttl_ms: int) -> None:
        """Change the TTL for all subsequent reads."""
        value = _validate_ttl(ttl_ms)
        with self._lock:
            self._ttl_ms = value
        logger.info("Health cache timeout set to %dms", value)

    def get(self, name: str) -> ProbeResult | None:
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return None
            result, inserted_at = entry
            age_ms = (self._clock() - inserted_at) * 1000
            if age_ms < self._ttl_ms:
                return result
        return None

    def put(self, name: str, result: ProbeResult) -> None:
        with self._lock:
            self._entries[name] = (result, self._clock())

    def evict(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Health cache cleared (%d entries)", count)

    def __contains__(self, name: object) -> bool:
        """Whether an entry exists for ``name``, fresh or stale."""
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
