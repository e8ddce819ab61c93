"""WhatsApp Cloud API (Meta) client."""

from __future__ import annotations

from typing import Any, Optional

from django.conf import settings

from modules.messaging.exceptions import MessagingProviderError
from shared.infrastructure.http import ProviderClient

GRAPH_API_URL = "https://graph.facebook.com"


class WhatsAppClient(ProviderClient):
    provider = "whatsapp"
    error_class = MessagingProviderError

    def __init__(
        self, access_token: str, phone_number_id: str, api_version: str, **kwargs: Any
    ) -> None:
        super().__init__(
            f"{GRAPH_API_URL}/{api_version}/{phone_number_id}",
            headers={"Authorization": f"Bearer {access_token}"},
            **kwargs,
        )

    def send_text(self, to: str, body: str) -> str:
        """Send a text message; returns the provider message id (may be empty)."""
        response = self._request(
            "POST",
            "/messages",
            json={
                "messaging_product": "whatsapp",
                "to": to,
                "type": "text",
                "text": {"body": body},
            },
        )
        messages = response.get("messages") or []
        return str(messages[0].get("id", "")) if messages else ""

    @classmethod
    def from_settings(cls) -> Optional["WhatsAppClient"]:
        if not (settings.WHATSAPP_ACCESS_TOKEN and settings.WHATSAPP_PHONE_NUMBER_ID):
            return None
        return cls(
            settings.WHATSAPP_ACCESS_TOKEN,
            settings.WHATSAPP_PHONE_NUMBER_ID,
            settings.WHATSAPP_API_VERSION,
        )
