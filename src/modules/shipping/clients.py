"""Delhivery shipment API client."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.conf import settings

from modules.shipping.exceptions import CourierProviderError
from shared.infrastructure.http import ProviderClient


class DelhiveryClient(ProviderClient):
    provider = "delhivery"
    error_class = CourierProviderError

    def __init__(self, api_key: str, **kwargs: Any) -> None:
        super().__init__(
            settings.DELHIVERY_BASE_URL,
            headers={"Authorization": f"Token {api_key}"},
            **kwargs,
        )

    def create_shipment(self, payload: Dict[str, Any]) -> str:
        """Create a shipment and return its waybill."""
        response = self._request("POST", "/api/cmu/create.json", json=payload)
        packages = response.get("packages") or []
        waybill = (packages[0].get("waybill") if packages else None) or response.get(
            "waybill"
        )
        if not waybill:
            raise CourierProviderError("No waybill returned from Delhivery")
        return str(waybill)

    @classmethod
    def from_settings(cls) -> Optional["DelhiveryClient"]:
        if not settings.DELHIVERY_API_KEY:
            return None
        return cls(settings.DELHIVERY_API_KEY)
