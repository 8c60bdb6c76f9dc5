"""API routes for the health monitor.

Endpoints:
  GET  /api/health                  — overall status + per-service results
  GET  /api/health/detailed         — snapshot + performance + config summary
  GET  /api/health/service/{name}   — single service probe
  GET  /api/health/summary          — counts + critical issues
  GET  /api/health/metrics          — latency / error metrics of last snapshot
  GET  /api/health/services         — registered service names
  POST /api/health/critical         — gate on a set of services
  POST /api/health/cache/clear      — drop all cached probe results
  PUT  /api/health/cache/timeout    — change the cache TTL
  GET  /api/health/stream           — SSE stream of scheduled snapshots
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from pulse.health import HealthMonitor, InvalidCacheTimeoutError, Status, SystemSnapshot

logger = logging.getLogger(__name__)

health_router = APIRouter()


class CriticalRequest(BaseModel):
    services: list[str] | None = None  # None = configured critical services


class CacheTimeoutRequest(BaseModel):
    timeout_ms: int


def _monitor(request: Request) -> HealthMonitor:
    return request.app.state.health_monitor


def _http_status(status: Status) -> int:
    return 503 if status is Status.UNHEALTHY else 200


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── SSE subscriber list (in-memory) ──────────────────────────────────────────

_sse_queues: list[asyncio.Queue[dict[str, Any]]] = []


def broadcast_snapshot(snap: SystemSnapshot) -> None:
    """Push a snapshot to all SSE subscribers."""
    data = snap.to_dict()
    for q in _sse_queues:
        try:
            q.put_nowait(data)
        except asyncio.QueueFull:
            pass  # slow consumer: drop the update


# ── Health endpoints ─────────────────────────────────────────────────────────


@health_router.get("/health")
def system_health(request: Request) -> JSONResponse:
    """Overall status; 503 only when the system is unhealthy."""
    snap = _monitor(request).check_all_services()
    body = snap.to_dict()
    body["services"] = [
        {
            "name": s.subsystem,
            "status": s.status.value,
            "configured": s.configured,
            "latency_us": s.latency_us,
            **({"error": s.error} if s.error else {}),
        }
        for s in snap.services
    ]
    return JSONResponse(body, status_code=_http_status(snap.overall))


@health_router.get("/health/detailed")
def detailed_health(request: Request) -> dict[str, Any]:
    monitor = _monitor(request)
    snap = monitor.check_all_services()
    body = snap.to_dict()
    body["performance"] = monitor.get_performance_metrics().to_dict()
    body["configuration"] = request.app.state.settings.config_summary()
    return body


@health_router.get("/health/service/{name}")
def service_health(name: str, request: Request) -> JSONResponse:
    result = _monitor(request).check_service_health(name)
    return JSONResponse(result.to_dict(), status_code=_http_status(result.status))


@health_router.get("/health/summary")
def health_summary(request: Request) -> JSONResponse:
    summary = _monitor(request).get_health_summary()
    return JSONResponse(summary.to_dict(), status_code=_http_status(summary.status))


@health_router.get("/health/metrics")
def performance_metrics(request: Request) -> dict[str, Any]:
    return _monitor(request).get_performance_metrics().to_dict()


@health_router.get("/health/services")
def registered_services(request: Request) -> dict[str, Any]:
    services = _monitor(request).get_registered_services()
    return {"services": services, "count": len(services), "timestamp": _now_iso()}


@health_router.post("/health/critical")
def critical_services(body: CriticalRequest, request: Request) -> JSONResponse:
    names = body.services
    if names is None:
        names = list(request.app.state.settings.critical_services)
    ok = _monitor(request).check_critical_services(names)
    return JSONResponse(
        {"ok": ok, "services": names, "timestamp": _now_iso()},
        status_code=200 if ok else 503,
    )


@health_router.post("/health/cache/clear")
def clear_cache(request: Request) -> dict[str, Any]:
    _monitor(request).clear_cache()
    return {"message": "Health check cache cleared", "timestamp": _now_iso()}


@health_router.put("/health/cache/timeout")
def set_cache_timeout(body: CacheTimeoutRequest, request: Request) -> dict[str, Any]:
    monitor = _monitor(request)
    try:
        monitor.set_cache_timeout(body.timeout_ms)
    except InvalidCacheTimeoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"timeout_ms": monitor.cache.ttl_ms, "timestamp": _now_iso()}


# ── SSE stream ───────────────────────────────────────────────────────────────


SSE_KEEPALIVE_S = 15.0
SSE_BACKLOG = 50


def _sse_frame(event: str, payload: dict[str, Any], seq: int) -> str:
    return f"id: {seq}\nevent: {event}\ndata: {json.dumps(payload)}\n\n"


async def _snapshot_events(request: Request, inbox: asyncio.Queue[dict[str, Any]]):
    seq = 0
    current = _monitor(request).aggregator.latest()
    if current is not None:
        yield _sse_frame("init", current.to_dict(), seq)

    while not await request.is_disconnected():
        try:
            payload = await asyncio.wait_for(inbox.get(), timeout=SSE_KEEPALIVE_S)
        except asyncio.TimeoutError:
            yield ": ping\n\n"
            continue
        seq += 1
        yield _sse_frame("snapshot", payload, seq)


@health_router.get("/health/stream")
async def health_stream(request: Request) -> StreamingResponse:
    """Subscribe to snapshots as the refresh scheduler takes them.

    The first frame (``init``) replays the latest snapshot, if any. Each
    frame carries an increasing ``id``; idle connections get a comment
    line every ``SSE_KEEPALIVE_S`` seconds.
    """
    inbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=SSE_BACKLOG)
    _sse_queues.append(inbox)

    async def body():
        try:
            async for frame in _snapshot_events(request, inbox):
                yield frame
        finally:
            _sse_queues.remove(inbox)

    return StreamingResponse(
        body(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
