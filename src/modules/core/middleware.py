import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

# Headers checked in order; provider event ids make webhook retries traceable.
CORRELATION_HEADERS = ("HTTP_X_REQUEST_ID", "HTTP_X_RAZORPAY_EVENT_ID")


def _channel_for(path: str) -> str:
    """Name the inbound channel from the URL (``whatsapp``, ``razorpay``, ``api``...)."""
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 2 and parts[0] == "webhooks":
        return parts[1]
    return parts[0] if parts else "root"


class CorrelationIdMiddleware:
    """Middleware that extracts or generates a correlation ID for each request.

    Reads ``X-Request-ID`` (or a provider event id for webhook calls).  If
    absent, generates a new UUID4.  The ID is stored in a ContextVar and bound
    to structlog so every log line of the request carries it, together with
    the inbound channel.  It is returned via the ``X-Request-ID`` header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = next(
            (request.META[h] for h in CORRELATION_HEADERS if request.META.get(h)),
            None,
        ) or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid, channel=_channel_for(request.path)
        )

        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
        )

        response["X-Request-ID"] = cid
        return response
