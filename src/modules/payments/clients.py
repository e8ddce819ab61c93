"""Razorpay REST client (payment links)."""

from __future__ import annotations

from typing import Any, Dict

from django.conf import settings

from modules.payments.exceptions import PaymentProviderError
from shared.infrastructure.http import ProviderClient


class RazorpayClient(ProviderClient):
    provider = "razorpay"
    error_class = PaymentProviderError

    def __init__(self, key_id: str, key_secret: str, **kwargs: Any) -> None:
        super().__init__(
            settings.RAZORPAY_BASE_URL, auth=(key_id, key_secret), **kwargs
        )

    def create_payment_link(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/payment_links", json=payload)

    @classmethod
    def from_settings(cls) -> "RazorpayClient | None":
        if not (settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET):
            return None
        return cls(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
