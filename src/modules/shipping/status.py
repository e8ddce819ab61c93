"""Courier status mapping.

Maps the carrier's free-text status to an order status.  Rules are
evaluated in order against the lower-cased text; the first rule with a
matching substring wins.  Text that matches nothing maps to ``None`` and
leaves the order unchanged.
"""

from __future__ import annotations

from typing import Optional

from modules.orders.constants import OrderStatus

STATUS_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("picked", "pickup"), OrderStatus.PROCESSING),
    (
        ("in transit", "in_transit", "dispatched", "out for delivery"),
        OrderStatus.OUT_FOR_DELIVERY,
    ),
    (("delivered",), OrderStatus.DELIVERED),
    (("cancelled", "rto", "return"), OrderStatus.CANCELLED),
)


def map_status(text: Optional[str]) -> Optional[str]:
    lowered = (text or "").lower()
    if not lowered:
        return None
    for needles, status in STATUS_RULES:
        if any(needle in lowered for needle in needles):
            return status
    return None
