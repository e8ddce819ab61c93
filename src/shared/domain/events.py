"""Order lifecycle facts passed between bounded contexts.

Services record events on the aggregate they change; the repository pulls
them on save and hands them to the bus once the transaction commits, so a
handler never sees a fact that was rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID


@dataclass(frozen=True)
class DomainEvent:
    """A committed fact about one order. ``aggregate_id`` is the order id."""

    aggregate_id: UUID
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_name(self) -> str:
        return type(self).__name__


class DomainEventMixin:
    """Lets a model buffer events between a state change and its save."""

    def record_event(self, event: DomainEvent) -> None:
        self.__dict__.setdefault("_pending_events", []).append(event)

    def pull_events(self) -> list[DomainEvent]:
        """Return the buffered events and forget them."""
        return self.__dict__.pop("_pending_events", [])
