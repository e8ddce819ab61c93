"""Payment event (audit log) repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.payments.models import PaymentEvent


class IPaymentEventRepository(ABC):
    @abstractmethod
    def record(
        self,
        *,
        order_id: Optional[UUID],
        event_id: str,
        event_type: str,
        outcome: str,
        signature_verified: bool,
        payload: Dict[str, Any],
    ) -> PaymentEvent:
        """Append an audit record."""
