from __future__ import annotations

from typing import Any

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Process metadata reported in every snapshot
    app_version: str = "1.0.0"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"

    # Health engine
    health_cache_ttl_ms: int = 30_000
    probe_timeout_ms: int | None = 5_000  # None = wait forever
    probe_workers: int = 8
    refresh_interval_seconds: int = 30  # 0 disables the background refresh
    critical_services: list[str] = ["chat"]

    # Mistral (chat + PDF OCR)
    mistral_api_key: str = ""
    mistral_model: str = "mistral-large-latest"
    mistral_ocr_model: str = "mistral-ocr-latest"

    # Calendar webhook (Zapier MCP)
    zapier_mcp_url: str = ""

    # Google Drive OAuth client
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""

    def config_summary(self) -> dict[str, Any]:
        """Non-secret view of the active configuration."""
        return {
            "server": {
                "port": self.api_port,
                "environment": self.environment,
                "version": self.app_version,
            },
            "services": {
                "mistral": bool(self.mistral_api_key),
                "googleDrive": bool(self.google_client_id and self.google_client_secret),
                "zapier": bool(self.zapier_mcp_url),
            },
            "health": {
                "cache_ttl_ms": self.health_cache_ttl_ms,
                "probe_timeout_ms": self.probe_timeout_ms,
                "refresh_interval_seconds": self.refresh_interval_seconds,
                "critical_services": list(self.critical_services),
            },
        }


settings = Settings()
