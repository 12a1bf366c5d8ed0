"""Event bus for pipeline observability.

Provides a simple synchronous event bus for emitting domain events from the
pipeline to CLI formatters. Keeps presentation (banner, progress lines,
summary) out of the pipeline itself.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Allows both EventBus and NullEventBus to satisfy the interface
    without inheritance.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers."""
        ...


class EventBus:
    """Simple synchronous event bus.

    Events are dispatched synchronously to all subscribers, in the emitting
    thread. Handler exceptions propagate to the caller.

    Example:
        bus = EventBus()
        bus.subscribe(RunSummary, lambda e: print(f"Total: {e.total}"))
        bus.emit(RunSummary(total=3, succeeded=3, failed=0, dropped=0, duration_seconds=0.1))
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The event class to subscribe to
            handler: Callable that receives the event instance
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers.

        Handlers are called in subscription order. Events with no
        subscribers are ignored.
        """
        handlers = self._subscribers.get(type(event), [])
        for handler in handlers:
            handler(event)


class NullEventBus:
    """No-op event bus for library use where no CLI is present.

    Does NOT inherit from EventBus: subscribing to it is a no-op, and
    inheritance would hide that from someone expecting callbacks.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """No-op subscription - handler will never be called."""
        pass

    def emit(self, event: T) -> None:
        """No-op emission."""
        pass
