"""Order lifecycle events published by the order assembler and the courier webhook."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """An order and its line items were committed; weights are still unknown."""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """A courier update moved the order forward.

    Stale or out-of-order updates never produce this event.
    """

    old_status: str = ""
    new_status: str = ""
