"""Domain events for the Shipping bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class ShipmentCreated(DomainEvent):
    tracking_id: str = ""
    placeholder: bool = False
