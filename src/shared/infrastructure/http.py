"""Thin JSON-over-HTTP base for provider clients (Meta, Razorpay, Delhivery).

Every call carries the configured timeout.  Transport failures, non-2xx
answers and non-JSON bodies are raised as the client's ``error_class`` so
callers handle one exception type per provider.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

import requests
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)


class ProviderClient:
    provider: str = "provider"
    error_class: Type[Exception] = RuntimeError

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[tuple] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.PROVIDER_HTTP_TIMEOUT_SECONDS
        self._session = session or requests.Session()
        if headers:
            self._session.headers.update(headers)
        if auth:
            self._session.auth = auth

    def _request(
        self, method: str, path: str, json: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("provider.request_failed", provider=self.provider, error=str(exc))
            raise self.error_class(f"{self.provider} request failed: {exc}") from exc

        if not response.ok:
            body = response.text[:500] if response.text else ""
            logger.error(
                "provider.error_response",
                provider=self.provider,
                status_code=response.status_code,
                body=body,
            )
            raise self.error_class(
                f"{self.provider} returned error {response.status_code}: {body}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise self.error_class(f"{self.provider} returned a non-JSON body") from exc
