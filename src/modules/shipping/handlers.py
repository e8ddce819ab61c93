"""Event handlers for Shipping domain events."""

from __future__ import annotations

import structlog

from modules.shipping.events import ShipmentCreated
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class ShipmentCreatedHandler(IEventHandler[ShipmentCreated]):
    def handle(self, event: ShipmentCreated) -> None:
        from modules.messaging.notifications import get_notification_service

        order_id = str(event.aggregate_id)
        try:
            get_notification_service().shipment_created(order_id, event.tracking_id)
        except Exception:
            logger.exception("shipment.notification_failed", order_id=order_id)


shipment_created_handler = ShipmentCreatedHandler()
