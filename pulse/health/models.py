"""Result models shared by the probe engine, aggregator and API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Status(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe of one subsystem."""

    subsystem: str
    status: Status
    configured: bool
    checked_at: datetime = field(default_factory=utcnow)
    latency_us: int | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "service": self.subsystem,
            "status": self.status.value,
            "configured": self.configured,
            "checked_at": self.checked_at.isoformat(),
            "latency_us": self.latency_us,
            "metadata": self.metadata,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class SystemSnapshot:
    """Aggregate view across every registered subsystem."""

    overall: Status
    services: list[ProbeResult]
    timestamp: datetime
    uptime_s: float
    version: str
    environment: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.overall.value,
            "timestamp": self.timestamp.isoformat(),
            "uptime_s": round(self.uptime_s, 3),
            "version": self.version,
            "environment": self.environment,
            "services": [s.to_dict() for s in self.services],
        }


@dataclass(frozen=True)
class HealthSummary:
    status: Status
    healthy_services: int
    total_services: int
    critical_issues: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "healthy_services": self.healthy_services,
            "total_services": self.total_services,
            "critical_issues": list(self.critical_issues),
        }
