"""WhatsApp webhook endpoint (Meta Cloud API, Twilio-style form posts)."""

from __future__ import annotations

import structlog
from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
    throttle_classes,
)
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from modules.messaging.services import (
    get_inbound_message_service,
    parse_meta_payload,
    parse_twilio_form,
)

logger = structlog.get_logger(__name__)


def verify_subscription(request: Request) -> HttpResponse:
    """Meta subscription handshake: echo ``hub.challenge`` for the right token."""
    mode = request.query_params.get("hub.mode")
    token = request.query_params.get("hub.verify_token")
    challenge = request.query_params.get("hub.challenge")
    if (
        mode == "subscribe"
        and token
        and challenge
        and settings.WHATSAPP_VERIFY_TOKEN
        and token == settings.WHATSAPP_VERIFY_TOKEN
    ):
        return HttpResponse(challenge, content_type="text/plain")
    logger.warning("whatsapp.verification_failed", mode=mode)
    return HttpResponse("Forbidden", status=status.HTTP_403_FORBIDDEN)


@api_view(["GET", "POST"])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
def whatsapp_webhook(request: Request):
    """GET/POST /webhooks/whatsapp/

    Inbound messages are always acknowledged; a failure while handling one
    is logged, since a non-2xx answer only makes the provider retry.
    """
    if request.method == "GET":
        return verify_subscription(request)

    if "json" in (request.content_type or ""):
        data = request.data if isinstance(request.data, dict) else {}
        parsed = parse_meta_payload(data)
    else:
        parsed = parse_twilio_form(request.data.dict() if hasattr(request.data, "dict") else {})

    try:
        get_inbound_message_service().process(parsed)
    except Exception:
        logger.exception("whatsapp.processing_failed")

    return Response({"status": "received"})
