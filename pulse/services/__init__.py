"""Built-in subsystems and their registration with the health monitor."""

from __future__ import annotations

import logging

from ..config import Settings
from ..health.capability import Monitorable
from ..health.monitor import HealthMonitor
from .adapters import CalendarWebhookService, GoogleDriveService, MistralChatService, PdfOcrService

logger = logging.getLogger(__name__)


def build_services(s: Settings) -> dict[str, Monitorable]:
    """Instantiate every built-in subsystem, keyed by health-check name."""
    return {
        "chat": MistralChatService.from_settings(s),
        "pdf": PdfOcrService.from_settings(s),
        "calendar": CalendarWebhookService.from_settings(s),
        "googleDrive": GoogleDriveService.from_settings(s),
    }


def register_all_services(monitor: HealthMonitor, s: Settings) -> list[str]:
    """Register the built-in subsystems and return the registered names."""
    for name, service in build_services(s).items():
        monitor.register_service(name, service)
    names = monitor.get_registered_services()
    logger.info("Registered services: %s", ", ".join(names))
    return names


def unregister_all_services(monitor: HealthMonitor) -> None:
    for name in monitor.get_registered_services():
        monitor.unregister_service(name)
    logger.info("All services unregistered")


__all__ = [
    "CalendarWebhookService",
    "GoogleDriveService",
    "MistralChatService",
    "PdfOcrService",
    "build_services",
    "register_all_services",
    "unregister_all_services",
]
