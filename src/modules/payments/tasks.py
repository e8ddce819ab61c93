"""Fulfilment of a paid order.

Runs after a payment is first recorded as paid: compute weights, tell the
buyer, request the shipment.  Each step is independent; a failing step is
logged and the next one still runs.  The shipment notification is sent by
the ``ShipmentCreated`` handler once a tracking id exists.
"""

import structlog
from celery import shared_task

from modules.messaging.notifications import get_notification_service
from modules.orders.weights import get_weight_service
from modules.shipping.services import get_courier_dispatcher

logger = structlog.get_logger(__name__)


@shared_task(name="payments.fulfil_paid_order")
def fulfil_paid_order(order_id: str):
    log = logger.bind(order_id=order_id)
    steps = {}

    try:
        get_weight_service().compute(order_id)
        steps["weights"] = "ok"
    except Exception:
        log.exception("fulfilment.weights_failed")
        steps["weights"] = "failed"

    try:
        get_notification_service().payment_confirmed(order_id)
        steps["notification"] = "ok"
    except Exception:
        log.exception("fulfilment.notification_failed")
        steps["notification"] = "failed"

    try:
        result = get_courier_dispatcher().dispatch(order_id)
        steps["shipment"] = result.tracking_id
    except Exception:
        log.exception("fulfilment.dispatch_failed")
        steps["shipment"] = "failed"

    log.info("fulfilment.finished", **steps)
    return steps
