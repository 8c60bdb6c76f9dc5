"""FastAPI server exposing the health monitor."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse.api.health_routes import broadcast_snapshot, health_router
from pulse.config import Settings, settings as default_settings
from pulse.health import HealthCache, HealthMonitor, HealthScheduler, ProcessInfo, ServiceRegistry
from pulse.services import register_all_services

logger = logging.getLogger(__name__)


def build_monitor(s: Settings) -> HealthMonitor:
    """Construct the process-wide monitor from settings."""
    cache = HealthCache(ttl_ms=s.health_cache_ttl_ms)
    return HealthMonitor(
        registry=ServiceRegistry(cache=cache),
        cache=cache,
        process=ProcessInfo(version=s.app_version, environment=s.environment),
        probe_timeout_ms=s.probe_timeout_ms,
        max_workers=s.probe_workers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared resources on startup."""
    s: Settings = app.state.settings

    # A test may have injected its own monitor before startup.
    monitor = getattr(app.state, "health_monitor", None)
    if monitor is None:
        monitor = build_monitor(s)
        register_all_services(monitor, s)
        app.state.health_monitor = monitor

    scheduler = HealthScheduler(
        monitor,
        interval=float(s.refresh_interval_seconds),
        on_snapshot=broadcast_snapshot,
    )
    app.state.health_scheduler = scheduler
    try:
        await scheduler.start()
    except Exception:
        logger.exception("Health scheduler failed to start")

    # Off the event loop: a check may block for up to the probe timeout.
    ok = await asyncio.get_running_loop().run_in_executor(
        None, monitor.check_critical_services, s.critical_services,
    )
    if not ok:
        logger.warning(
            "Starting with critical services not healthy: %s",
            ", ".join(s.critical_services),
        )

    yield

    # Shutdown
    await scheduler.stop()
    monitor.close()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    s = app_settings or default_settings
    app = FastAPI(
        title="Pulse - Service Health",
        version=s.app_version,
        lifespan=lifespan,
    )
    app.state.settings = s

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api")

    return app


app = create_app()
