"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from fakes import FakeClock, FakeNow
from pulse.health import HealthCache, HealthMonitor, ProcessInfo, ServiceRegistry


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def now() -> FakeNow:
    return FakeNow()


@pytest.fixture
def cache(clock: FakeClock) -> HealthCache:
    return HealthCache(ttl_ms=30_000, clock=clock)


@pytest.fixture
def monitor(cache: HealthCache, now: FakeNow) -> Iterator[HealthMonitor]:
    """A monitor on fake clocks with no probe timeout."""
    m = HealthMonitor(
        registry=ServiceRegistry(cache=cache),
        cache=cache,
        process=ProcessInfo(version="9.9.9", environment="test"),
        now=now,
    )
    yield m
    m.close()
