"""Errors raised while assembling or advancing an order.

``OrderViewSet`` maps each one to a ``{code, detail}`` body; the
conversation engine turns them into a WhatsApp reply instead.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class InvalidOrderStatus(Exception):
    """The order's current status does not allow the requested operation."""


class InvalidSchool(Exception):
    """The school code is unknown or inactive, or the class is not the school's."""


class UnknownItem(Exception):
    """An item referenced by the order does not exist or is inactive."""


class InsufficientStock(Exception):
    """Not enough stock to fulfil the requested quantity."""
