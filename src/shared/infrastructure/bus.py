"""In-memory event bus implementation."""

from __future__ import annotations

from functools import partial
from typing import Dict, Iterable, List, Tuple, Type, Union

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    A failing handler is logged and does not stop the remaining handlers;
    events describe facts that are already committed.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event_class: Type[DomainEvent]) -> Tuple[IEventHandler, ...]:
        return tuple(self._handlers.get(event_class, ()))

    def publish(self, event: DomainEvent) -> None:
        for handler in self.handlers_for(type(event)):
            try:
                handler.handle(event)
            except Exception:
                logger.exception(
                    "event_bus.handler_failed",
                    event_name=event.event_name,
                    aggregate_id=str(event.aggregate_id),
                    handler=type(handler).__name__,
                )


# Global bus instance (singleton)

event_bus = InMemoryEventBus()


def publish_on_commit(events: Union[DomainEvent, Iterable[DomainEvent]]) -> None:
    """Publish events once the current transaction commits.

    Outside a transaction the events are published immediately.
    """
    if isinstance(events, DomainEvent):
        events = [events]
    for event in events:
        transaction.on_commit(partial(event_bus.publish, event))
