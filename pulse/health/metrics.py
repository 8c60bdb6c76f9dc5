"""Performance metrics derived from a batch of probe results."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import ProbeResult


@dataclass(frozen=True)
class PerformanceMetrics:
    average_latency_us: int = 0
    slowest_service: str | None = None
    fastest_service: str | None = None
    services_with_errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "average_latency_us": self.average_latency_us,
            "slowest_service": self.slowest_service,
            "fastest_service": self.fastest_service,
            "services_with_errors": self.services_with_errors,
        }


def compute_metrics(results: Iterable[ProbeResult]) -> PerformanceMetrics:
    """Summarise latency and error counts.

    Only results carrying a latency take part in the latency figures; ties
    for slowest/fastest go to the first result encountered. A batch with no
    latency at all yields the empty PerformanceMetrics().
    """
    results = list(results)
    timed = [(r.subsystem, r.latency_us) for r in results if r.latency_us is not None]
    if not timed:
        return PerformanceMetrics()

    slowest_name, slowest = timed[0]
    fastest_name, fastest = timed[0]
    for name, latency in timed[1:]:
        if latency > slowest:
            slowest_name, slowest = name, latency
        if latency < fastest:
            fastest_name, fastest = name, latency

    mean = sum(latency for _, latency in timed) / len(timed)
    return PerformanceMetrics(
        average_latency_us=math.floor(mean + 0.5),  # half up, not banker's
        slowest_service=slowest_name,
        fastest_service=fastest_name,
        services_with_errors=sum(1 for r in results if r.error),
    )
