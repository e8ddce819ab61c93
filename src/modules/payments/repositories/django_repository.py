"""Django ORM implementation of the payment event repository."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from modules.payments.models import PaymentEvent
from modules.payments.repositories.interfaces import IPaymentEventRepository


class PaymentEventDjangoRepository(IPaymentEventRepository):
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
        return PaymentEvent.objects.create(
            order_id=order_id,
            event_id=event_id or "",
            event_type=event_type or "",
            outcome=outcome,
            signature_verified=signature_verified,
            payload=payload,
        )
