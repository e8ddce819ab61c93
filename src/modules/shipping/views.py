"""Delhivery status webhook endpoint."""

from __future__ import annotations

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

from modules.shipping.exceptions import MissingTrackingId
from modules.shipping.services import get_courier_webhook_service


@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([])
def delhivery_webhook(request: Request) -> Response:
    """POST /webhooks/delhivery/

    Unknown tracking ids are recorded and acknowledged so the carrier
    does not keep retrying.
    """
    payload = request.data if isinstance(request.data, dict) else {}
    try:
        result = get_courier_webhook_service().handle(dict(payload))
    except MissingTrackingId as exc:
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"success": True, **result.model_dump(mode="json")})
