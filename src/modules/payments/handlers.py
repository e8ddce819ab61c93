"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import PaymentConfirmed, PaymentFailed
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentConfirmedHandler(IEventHandler[PaymentConfirmed]):
    def handle(self, event: PaymentConfirmed) -> None:
        from modules.payments.tasks import fulfil_paid_order

        order_id = str(event.aggregate_id)
        try:
            fulfil_paid_order.delay(order_id)
        except Exception:
            logger.exception("payment.fulfilment_enqueue_failed", order_id=order_id)
            return
        logger.info("payment.fulfilment_enqueued", order_id=order_id)


class PaymentFailedHandler(IEventHandler[PaymentFailed]):
    def handle(self, event: PaymentFailed) -> None:
        from modules.messaging.notifications import get_notification_service

        order_id = str(event.aggregate_id)
        try:
            get_notification_service().payment_failed(order_id)
        except Exception:
            logger.exception("payment.failure_notification_failed", order_id=order_id)


payment_confirmed_handler = PaymentConfirmedHandler()
payment_failed_handler = PaymentFailedHandler()
