"""Event publisher abstraction: forwards fulfillment outcomes to subscribers."""

import os

_publisher_instance = None


def get_publisher():
    """Return the configured event publisher (singleton).

    Uses FakePublisher by default. Set FULFILLMENT_EVENT_PUBLISHER=log to
    write outgoing events to the structured log instead.
    """
    global _publisher_instance
    if _publisher_instance is None:
        adapter = os.environ.get("FULFILLMENT_EVENT_PUBLISHER", "fake")
        if adapter == "fake":
            from fulfillment.publisher.fake_adapter import FakePublisher

            _publisher_instance = FakePublisher()
        elif adapter == "log":
            from fulfillment.publisher.log_adapter import LogPublisher

            _publisher_instance = LogPublisher()
        else:
            raise ValueError(f"Unknown event publisher: {adapter}")
    return _publisher_instance


def reset_publisher():
    """Reset the publisher singleton (useful for testing)."""
    global _publisher_instance
    _publisher_instance = None
