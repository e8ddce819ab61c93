"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentConfirmed(DomainEvent):
    """Raised once per order, when its payment is first recorded as paid."""


@dataclass(frozen=True)
class PaymentFailed(DomainEvent):
    """Raised when a pending payment is recorded as failed."""
