"""Publisher port: abstract interface for outgoing fulfillment events.

Downstream consumers (order status, customer notifications) subscribe to
named events such as ``fulfillment.shipped``. Delivery is best-effort: a
publisher failure never undoes a committed status change.
"""

from abc import ABC, abstractmethod


class EventPublisherPort(ABC):
    """Abstract interface for event publisher adapters."""

    @abstractmethod
    def emit(self, event_name: str, payload: dict) -> None:
        """Publish ``payload`` under ``event_name``.

        Raises any exception on delivery failure; callers decide whether to
        absorb it.
        """
        ...
