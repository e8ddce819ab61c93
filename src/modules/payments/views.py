"""Razorpay webhook endpoint."""

from __future__ import annotations

import structlog
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

from modules.payments.exceptions import InvalidSignature, MalformedPayload
from modules.payments.services import get_payment_reconciler

logger = structlog.get_logger(__name__)


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
def razorpay_webhook(request: Request) -> Response:
    """POST /webhooks/razorpay/

    The raw body is read before DRF parses it; the signature covers the
    exact bytes Razorpay sent.
    """
    raw_body = request.body
    try:
        result = get_payment_reconciler().handle(
            raw_body,
            signature=request.headers.get("X-Razorpay-Signature", ""),
            event_id=request.headers.get("X-Razorpay-Event-Id", ""),
        )
    except InvalidSignature:
        return Response({"error": "Invalid signature"}, status=status.HTTP_403_FORBIDDEN)
    except MalformedPayload as exc:
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({"ok": True, **result.model_dump(mode="json")})
