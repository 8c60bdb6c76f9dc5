"""Tests for the FastAPI health routes."""

from __future__ import annotations

import threading

import pytest
from fastapi.testclient import TestClient

from fakes import DescribedService, FakeService
from pulse.api.server import build_monitor, create_app
from pulse.config import Settings
from pulse.health import HealthMonitor


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        app_version="2.0.0",
        critical_services=["chat"],
        refresh_interval_seconds=0,
        mistral_api_key="",
        zapier_mcp_url="",
        google_client_id="",
        google_client_secret="",
    )


@pytest.fixture
def client(app_settings: Settings, monitor: HealthMonitor) -> TestClient:
    app = create_app(app_settings)
    app.state.health_monitor = monitor
    return TestClient(app)


class TestSystemHealth:
    def test_empty_registry_is_503(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["services"] == []

    def test_degraded_is_200(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService(True, True))
        monitor.register_service("pdf", FakeService(False, False))
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "degraded"
        assert data["version"] == "9.9.9"
        names = {s["name"]: s for s in data["services"]}
        assert names["chat"]["status"] == "healthy"
        assert names["pdf"]["status"] == "unhealthy"
        assert "error" not in names["pdf"]

    def test_error_is_reported(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("drive", FakeService(error=RuntimeError("token expired")))
        data = client.get("/api/health").json()
        assert data["services"][0]["error"] == "token expired"

    def test_detailed(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("drive", DescribedService())
        resp = client.get("/api/health/detailed")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["services"][0]["metadata"]["capabilities"] == {"upload": True}
        assert data["performance"]["slowest_service"] == "drive"
        assert data["configuration"]["server"]["environment"] == "test"


class TestServiceHealth:
    def test_single_service(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService(True, False))
        resp = client.get("/api/health/service/chat")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"

    def test_not_registered(self, client: TestClient) -> None:
        resp = client.get("/api/health/service/ghost")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["error"] == "Service not registered"


class TestSummaryAndMetrics:
    def test_summary(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        monitor.register_service("pdf", FakeService(False))
        data = client.get("/api/health/summary").json()
        assert data == {
            "status": "degraded",
            "healthy_services": 1,
            "total_services": 2,
            "critical_issues": ["pdf: Service unhealthy"],
        }

    def test_metrics_empty(self, client: TestClient) -> None:
        data = client.get("/api/health/metrics").json()
        assert data == {
            "average_latency_us": 0,
            "slowest_service": None,
            "fastest_service": None,
            "services_with_errors": 0,
        }

    def test_services_list(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        data = client.get("/api/health/services").json()
        assert data["services"] == ["chat"]
        assert data["count"] == 1


class TestCritical:
    def test_default_critical_services(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        resp = client.post("/api/health/critical", json={})
        assert resp.status_code == 200
        assert resp.json()["ok"] is True

    def test_explicit_failing(self, client: TestClient, monitor: HealthMonitor) -> None:
        monitor.register_service("chat", FakeService())
        resp = client.post("/api/health/critical", json={"services": ["chat", "pdf"]})
        assert resp.status_code == 503
        assert resp.json()["ok"] is False


class TestCacheControl:
    def test_clear(self, client: TestClient, monitor: HealthMonitor) -> None:
        svc = FakeService()
        monitor.register_service("chat", svc)
        client.get("/api/health/service/chat")
        resp = client.post("/api/health/cache/clear")
        assert resp.status_code == 200
        client.get("/api/health/service/chat")
        assert svc.calls == 2

    def test_set_timeout(self, client: TestClient, monitor: HealthMonitor) -> None:
        resp = client.put("/api/health/cache/timeout", json={"timeout_ms": 1234})
        assert resp.status_code == 200
        assert resp.json()["timeout_ms"] == 1234
        assert monitor.cache.ttl_ms == 1234

    def test_negative_timeout_is_400(self, client: TestClient, monitor: HealthMonitor) -> None:
        resp = client.put("/api/health/cache/timeout", json={"timeout_ms": -1})
        assert resp.status_code == 400
        assert monitor.cache.ttl_ms == 30_000


class TestLifespan:
    def test_startup_builds_monitor_with_builtin_services(self, app_settings: Settings) -> None:
        app = create_app(app_settings)
        with TestClient(app) as c:
            data = c.get("/api/health/services").json()
            assert set(data["services"]) == {"chat", "pdf", "calendar", "googleDrive"}
            # No credentials in the test settings: everything is unconfigured.
            assert c.get("/api/health").json()["status"] == "unhealthy"

    def test_startup_critical_check_runs_in_executor(
        self, app_settings: Settings, monitor: HealthMonitor,
    ) -> None:
        monitor.register_service("chat", FakeService())
        seen: list[str] = []
        original = monitor.check_critical_services

        def recording(names):
            seen.append(threading.current_thread().name)
            return original(names)

        monitor.check_critical_services = recording
        app = create_app(app_settings)
        app.state.health_monitor = monitor
        with TestClient(app):
            pass
        # Default loop executor threads are named asyncio_N.
        assert len(seen) == 1
        assert seen[0].startswith("asyncio")

    def test_build_monitor_uses_settings(self) -> None:
        s = Settings(_env_file=None, health_cache_ttl_ms=1000, environment="staging")
        m = build_monitor(s)
        try:
            assert m.cache.ttl_ms == 1000
            assert m.engine.timeout_ms == s.probe_timeout_ms
            assert m.check_all_services().environment == "staging"
        finally:
            m.close()


class TestBroadcast:
    def test_broadcast_reaches_subscribers(self, monitor: HealthMonitor) -> None:
        import asyncio

        from pulse.api import health_routes

        monitor.register_service("chat", FakeService())
        snap = monitor.check_all_services()
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        health_routes._sse_queues.append(queue)
        try:
            health_routes.broadcast_snapshot(snap)
            health_routes.broadcast_snapshot(snap)  # full queue: dropped
        finally:
            health_routes._sse_queues.remove(queue)
        assert queue.qsize() == 1
        assert queue.get_nowait()["status"] == "healthy"

    def test_stream_replays_latest_then_forwards(self, monitor: HealthMonitor) -> None:
        import asyncio
        from types import SimpleNamespace

        from pulse.api import health_routes

        monitor.register_service("chat", FakeService())
        monitor.check_all_services()

        class _Request:
            app = SimpleNamespace(state=SimpleNamespace(health_monitor=monitor))

            def __init__(self) -> None:
                self.polls = 0

            async def is_disconnected(self) -> bool:
                self.polls += 1
                return self.polls > 1

        async def collect() -> list[str]:
            inbox: asyncio.Queue = asyncio.Queue()
            inbox.put_nowait({"status": "degraded"})
            return [f async for f in health_routes._snapshot_events(_Request(), inbox)]

        frames = asyncio.run(collect())
        assert len(frames) == 2
        assert frames[0].startswith("id: 0\nevent: init\n")
        assert '"status": "healthy"' in frames[0]
        assert frames[1] == 'id: 1\nevent: snapshot\ndata: {"status": "degraded"}\n\n'
