"""Event bus ports.

The store publishes to an ``IEventBus``; views and log handlers
subscribe per event class.  Anything with a ``handle(event)`` method
qualifies as a handler.
"""

from __future__ import annotations

from typing import Generic, Protocol, Type, TypeVar

from ferretex.shared.domain.events import DomainEvent

EventT = TypeVar("EventT", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[EventT]):
    def handle(self, event: EventT) -> None: ...


class IEventBus(Protocol):
    """Routes each published event to the handlers of its exact class."""

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(
        self, event_class: Type[EventT], handler: IEventHandler[EventT]
    ) -> None:
        """Register ``handler``; subscribing the same handler twice is a no-op."""

    def unsubscribe(
        self, event_class: Type[EventT], handler: IEventHandler[EventT]
    ) -> None:
        """Remove ``handler``; unknown handlers are ignored."""
