"""Health adapters for the proxied third-party backends.

Each adapter answers the Monitorable contract from local state only
(credentials present, client constructible). None of them call the remote
API; deeper liveness is the owning service's business.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..config import Settings


@dataclass
class MistralChatService:
    """LLM chat backed by the Mistral API."""

    api_key: str = ""
    model: str = "mistral-large-latest"

    @classmethod
    def from_settings(cls, s: Settings) -> MistralChatService:
        return cls(api_key=s.mistral_api_key, model=s.mistral_model)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def is_healthy(self) -> bool:
        return self.is_configured()

    def get_configuration(self) -> dict[str, Any]:
        return {"model": self.model, "api_key_configured": bool(self.api_key)}


@dataclass
class PdfOcrService:
    """PDF text extraction, with Mistral OCR when a key is present."""

    api_key: str = ""
    ocr_model: str = "mistral-ocr-latest"
    max_file_size: str = "10MB"

    @classmethod
    def from_settings(cls, s: Settings) -> PdfOcrService:
        return cls(api_key=s.mistral_api_key, ocr_model=s.mistral_ocr_model)

    @property
    def ocr_available(self) -> bool:
        return bool(self.api_key)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def is_healthy(self) -> bool:
        return self.ocr_available

    def get_capabilities(self) -> dict[str, Any]:
        return {
            "text_extraction": True,
            "mistral_ocr": self.ocr_available,
            "supported_formats": ["application/pdf"],
            "max_file_size": self.max_file_size,
        }


@dataclass
class CalendarWebhookService:
    """Calendar events relayed through a Zapier MCP webhook."""

    webhook_url: str = ""

    @classmethod
    def from_settings(cls, s: Settings) -> CalendarWebhookService:
        return cls(webhook_url=s.zapier_mcp_url)

    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    def is_healthy(self) -> bool:
        return self.webhook_url.startswith(("http://", "https://"))

    def get_configuration(self) -> dict[str, Any]:
        return {"zapier_url_configured": bool(self.webhook_url)}


@dataclass
class GoogleDriveService:
    """Google Drive file storage via an OAuth client."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    max_file_size: str = "100MB"

    @classmethod
    def from_settings(cls, s: Settings) -> GoogleDriveService:
        return cls(
            client_id=s.google_client_id,
            client_secret=s.google_client_secret,
            redirect_uri=s.google_redirect_uri,
        )

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def is_healthy(self) -> bool:
        # OAuth flow needs somewhere to land.
        return self.is_configured() and bool(self.redirect_uri)

    def get_configuration(self) -> dict[str, Any]:
        return {
            "credentials_configured": self.is_configured(),
            "redirect_uri": self.redirect_uri,
        }

    def get_capabilities(self) -> dict[str, Any]:
        ok = self.is_healthy()
        caps: dict[str, Any] = {
            op: ok
            for op in ("upload", "download", "search", "delete", "create_folder", "token_refresh")
        }
        caps["max_file_size"] = self.max_file_size
        caps["supported_formats"] = ["application/pdf"]
        return caps
