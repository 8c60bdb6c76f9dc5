"""Entry point for the Pulse health service."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pulse.config import settings
from pulse.health import HealthMonitor, Status, SystemSnapshot
from pulse.services import register_all_services

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STATUS_STYLE = {
    Status.HEALTHY: "green",
    Status.DEGRADED: "yellow",
    Status.UNHEALTHY: "red",
}


def run_server(host: str, port: int) -> None:
    console.print(Panel.fit(
        f"[bold]pulse[/bold] v{settings.app_version} ({settings.environment})\n"
        f"http://{host}:{port}/api/health",
        title="health API",
        border_style="cyan",
    ))
    uvicorn.run("pulse.api.server:app", host=host, port=port)


def render_snapshot(snap: SystemSnapshot) -> Table:
    table = Table(title=f"System: {snap.overall.value} ({snap.environment} v{snap.version})")
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("Configured")
    table.add_column("Latency (µs)", justify="right")
    table.add_column("Error")
    for r in snap.services:
        table.add_row(
            r.subsystem,
            f"[{_STATUS_STYLE[r.status]}]{r.status.value}[/]",
            "yes" if r.configured else "no",
            "-" if r.latency_us is None else str(r.latency_us),
            r.error or "",
        )
    return table


def run_check() -> int:
    """Probe the built-in services once and print the result."""
    from pulse.api.server import build_monitor

    monitor: HealthMonitor = build_monitor(settings)
    try:
        register_all_services(monitor, settings)
        snap = monitor.check_all_services()
        console.print(render_snapshot(snap))

        metrics = monitor.get_performance_metrics()
        console.print(
            f"[dim]avg {metrics.average_latency_us}µs | "
            f"slowest {metrics.slowest_service or '-'} | "
            f"errors {metrics.services_with_errors}[/dim]"
        )
    finally:
        monitor.close()
    return 1 if snap.overall is Status.UNHEALTHY else 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pulse",
        description="Report on the health of Pulse's backing services.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="expose the health API over HTTP")
    serve.add_argument("--host", default=settings.api_host)
    serve.add_argument("--port", type=int, default=settings.api_port)
    serve.set_defaults(handler=lambda a: run_server(a.host, a.port))

    check = commands.add_parser("check", help="check every built-in service once")
    check.set_defaults(handler=lambda a: run_check())

    args = parser.parse_args(argv)
    sys.exit(args.handler(args) or 0)


if __name__ == "__main__":
    main()
