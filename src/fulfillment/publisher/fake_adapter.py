"""Fake event publisher: records emitted events in memory.

Configurable to fail, so tests can check that publishing problems do not
affect the fulfillment itself.
"""

from fulfillment.publisher.port import EventPublisherPort


class FakePublisher(EventPublisherPort):
    """Fake publisher that always succeeds by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Publisher unavailable"
        self.emitted: list[tuple[str, dict]] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Publisher unavailable"):
        """Configure the fake publisher behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def emit(self, event_name: str, payload: dict) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.emitted.append((event_name, payload))

    def names(self) -> list[str]:
        return [name for name, _ in self.emitted]

    def reset(self):
        """Clear recorded events and restore default behavior."""
        self.emitted.clear()
        self.should_succeed = True
        self.failure_reason = "Publisher unavailable"
