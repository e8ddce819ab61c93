"""Order domain constants.

Defines status choices, the courier progression ranking and the item
limits applied to orders assembled from a WhatsApp conversation.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for delivery"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    PAYMENT_FAILED = "payment_failed", "Payment failed"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"


class DeliveryType(models.TextChoices):
    SCHOOL = "school", "School delivery"
    HOME = "home", "Home delivery"


# Forward progression of an order. A courier update may only move an order
# to a strictly higher rank.
STATUS_RANK: dict[str, int] = {
    OrderStatus.PENDING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.PROCESSING: 2,
    OrderStatus.OUT_FOR_DELIVERY: 3,
    OrderStatus.DELIVERED: 4,
}

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.PAYMENT_FAILED,
}

# Statuses from which a shipment can no longer be requested.
NOT_DISPATCHABLE: set[str] = {OrderStatus.CANCELLED, OrderStatus.PAYMENT_FAILED}

# Statuses a "payment completed" event may confirm. A failed payment can
# still be recovered by a later successful one.
PAYABLE_STATUSES: set[str] = {OrderStatus.PENDING, OrderStatus.PAYMENT_FAILED}


def allowed_predecessors(new_status: str) -> set[str]:
    """Statuses an order may be in for a move to ``new_status`` to apply."""
    if new_status == OrderStatus.CANCELLED:
        return {s for s in OrderStatus.values if s not in TERMINAL_STATES}
    rank = STATUS_RANK.get(new_status)
    if rank is None:
        return set()
    return {s for s, r in STATUS_RANK.items() if r < rank}


# Conversation orders submit at most this many items, one of each.
MAX_CONVERSATION_ITEMS = 3
CONVERSATION_ITEM_QUANTITY = 1

DEFAULT_PACKAGE_COUNT = 1
COURIER_SERVICE_DELHIVERY = "delhivery"

ORDER_NUMBER_MAX_RETRIES = 5
