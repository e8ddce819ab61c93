"""Asynchronous order tasks."""

import structlog
from celery import shared_task

from modules.orders.exceptions import OrderNotFound
from modules.orders.weights import get_weight_service

logger = structlog.get_logger(__name__)


@shared_task(name="orders.compute_order_weights")
def compute_order_weights(order_id: str):
    """Compute and store the shipping weights of an order."""
    try:
        result = get_weight_service().compute(order_id)
    except OrderNotFound:
        logger.warning("order.weights_order_missing", order_id=order_id)
        return None
    return result.model_dump()
