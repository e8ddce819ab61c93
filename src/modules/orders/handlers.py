"""Event handlers for Orders domain events.

Handlers enqueue Celery tasks; an enqueue failure is logged and never
reaches the code that committed the order.
"""

from __future__ import annotations

import structlog

from modules.orders.constants import OrderStatus
from modules.orders.events import OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)

NOTIFIED_STATUSES = {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        from modules.orders.tasks import compute_order_weights

        order_id = str(event.aggregate_id)
        try:
            compute_order_weights.delay(order_id)
        except Exception:
            logger.exception("order.weights_enqueue_failed", order_id=order_id)
            return
        logger.info("order.weights_enqueued", order_id=order_id)


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        if event.new_status not in NOTIFIED_STATUSES:
            return
        from modules.messaging.notifications import get_notification_service

        order_id = str(event.aggregate_id)
        try:
            get_notification_service().order_status_changed(order_id, event.new_status)
        except Exception:
            logger.exception(
                "order.status_notification_failed",
                order_id=order_id,
                new_status=event.new_status,
            )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
