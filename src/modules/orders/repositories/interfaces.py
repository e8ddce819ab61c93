"""Order repository interface.

Extends ``IRepository[Order]`` with the methods required by the order
lifecycle: atomic creation with items, idempotency-key and provider
reference look-ups, and conditional state updates.

Conditional updates (``mark_paid``, ``mark_payment_failed``,
``advance_status``, ``set_tracking``) are single guarded UPDATE
statements.  They return ``True`` only when this call changed the row, so
a caller racing a duplicate webhook knows whether it owns the side effects.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import WeightResultDTO
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root (Order + OrderItems + parcels)."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``school_id``, ``parent_phone``,
        ``delivery_type``, ``delivery_charge_paise`` and ``items`` (list of
        dicts with ``item_id``, ``quantity``, ``unit_price_paise``).
        """

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row-level lock."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Retrieve an order by its payment provider reference."""

    @abstractmethod
    def get_by_tracking_id(self, tracking_id: str) -> Optional[Order]:
        """Retrieve an order by courier tracking id."""

    @abstractmethod
    def set_payment_link(self, id: UUID, reference: str, url: str) -> None:
        """Store the payment link issued for an order."""

    @abstractmethod
    def save_weights(self, id: UUID, result: WeightResultDTO) -> None:
        """Write weights to the order and upsert parcel index 0."""

    @abstractmethod
    def mark_paid(self, id: UUID) -> bool:
        """Set paid/confirmed while the order is pending or its payment failed."""

    @abstractmethod
    def mark_payment_failed(self, id: UUID) -> bool:
        """Set failed/payment_failed while the payment is still pending."""

    @abstractmethod
    def advance_status(self, id: UUID, new_status: str) -> bool:
        """Move the order to ``new_status`` if its current status allows it."""

    @abstractmethod
    def set_tracking(
        self, id: UUID, tracking_id: str, courier_service: str, placeholder: bool
    ) -> bool:
        """Store the tracking id unless one is already present."""
