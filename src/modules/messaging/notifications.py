"""Buyer notifications for order lifecycle events.

Each method renders the message for an order and enqueues it on the
``messaging.send_whatsapp_message`` task.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from modules.messaging import messages
from modules.messaging.tasks import send_whatsapp_message
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderNotFound

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class NotificationService:
    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def payment_confirmed(self, order_id: str) -> None:
        order = self._load(order_id)
        self._enqueue(
            order, messages.payment_received(order.order_number, order.total_amount_paise)
        )

    def payment_failed(self, order_id: str) -> None:
        order = self._load(order_id)
        self._enqueue(order, messages.payment_failed(order.order_number))

    def shipment_created(self, order_id: str, tracking_id: str) -> None:
        order = self._load(order_id)
        self._enqueue(order, messages.shipment_created(order.order_number, tracking_id))

    def order_status_changed(self, order_id: str, status: str) -> None:
        order = self._load(order_id)
        body: Optional[str] = None
        if status == OrderStatus.OUT_FOR_DELIVERY:
            body = messages.out_for_delivery(order.order_number)
        elif status == OrderStatus.DELIVERED:
            body = messages.delivered(order.order_number)
        if body:
            self._enqueue(order, body)

    def _load(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _enqueue(order: Order, body: str) -> None:
        send_whatsapp_message.delay(order.parent_phone, body, str(order.id))
        logger.info("notification.enqueued", order_id=str(order.id))


def get_notification_service() -> NotificationService:
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return NotificationService(OrderDjangoRepository())
