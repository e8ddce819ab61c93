"""Courier event (audit log) repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

if TYPE_CHECKING:
    from modules.shipping.models import CourierEvent


class ICourierEventRepository(ABC):
    @abstractmethod
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
        """Append an audit record."""
