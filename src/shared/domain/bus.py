"""Contracts for the in-process event bus.

Order, payment and shipment services publish facts through an ``IEventBus``.
Each app registers ``IEventHandler`` implementations in ``AppConfig.ready()``
that turn those facts into Celery tasks.
"""

from __future__ import annotations

from typing import Generic, Protocol, Tuple, Type, TypeVar

from shared.domain.events import DomainEvent

EventT = TypeVar("EventT", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[EventT]):
    """Reacts to one event class. Runs after commit, inside the web request."""

    def handle(self, event: EventT) -> None: ...


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Dispatch ``event`` to the handlers subscribed to its exact class."""
        ...

    def subscribe(self, event_class: Type[EventT], handler: IEventHandler[EventT]) -> None:
        """Register ``handler``; registering it twice is a no-op."""
        ...

    def handlers_for(self, event_class: Type[DomainEvent]) -> Tuple[IEventHandler, ...]: ...
