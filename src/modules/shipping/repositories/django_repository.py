"""Django ORM implementation of the courier event repository."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from modules.orders.constants import COURIER_SERVICE_DELHIVERY
from modules.shipping.models import CourierEvent
from modules.shipping.repositories.interfaces import ICourierEventRepository


class CourierEventDjangoRepository(ICourierEventRepository):
    def record(
        self,
        *,
        order_id: Optional[UUID],
        tracking_id: str,
        event_type: str,
        payload: Dict[str, Any],
        mapped_status: str = "",
        applied: bool = False,
    ) -> CourierEvent:
        return CourierEvent.objects.create(
            order_id=order_id,
            courier_name=COURIER_SERVICE_DELHIVERY,
            tracking_id=tracking_id,
            event_type=(event_type or "")[:255],
            mapped_status=mapped_status or "",
            applied=applied,
            payload=payload,
        )
