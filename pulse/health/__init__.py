"""Health subsystem — registry, TTL cache, probe engine, aggregator, scheduler."""

from .aggregator import Aggregator, ProcessInfo, determine_overall
from .cache import HealthCache, InvalidCacheTimeoutError
from .capability import DescribesCapabilities, DescribesConfiguration, Monitorable
from .engine import NOT_REGISTERED, ProbeEngine, derive_status
from .metrics import PerformanceMetrics, compute_metrics
from .models import HealthSummary, ProbeResult, Status, SystemSnapshot
from .monitor import HealthMonitor
from .registry import ServiceRegistry
from .scheduler import HealthScheduler

__all__ = [
    "Aggregator",
    "DescribesCapabilities",
    "DescribesConfiguration",
    "HealthCache",
    "HealthMonitor",
    "HealthScheduler",
    "HealthSummary",
    "InvalidCacheTimeoutError",
    "Monitorable",
    "NOT_REGISTERED",
    "PerformanceMetrics",
    "ProbeEngine",
    "ProbeResult",
    "ProcessInfo",
    "ServiceRegistry",
    "Status",
    "SystemSnapshot",
    "compute_metrics",
    "derive_status",
    "determine_overall",
]
