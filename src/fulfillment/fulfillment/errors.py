"""Fulfillment error types.

State-machine and validation failures subclass Protean's ``ValidationError``
so callers can treat them uniformly while still telling them apart. Missing
fulfillments surface as ``protean.exceptions.ObjectNotFoundError``.
"""

from protean.exceptions import ValidationError


class InvalidTransitionError(ValidationError):
    """A status change is not permitted by the transition table."""

    def __init__(self, current: str, target: str, reason: str | None = None):
        self.current = current
        self.target = target
        message = reason or f"Invalid status transition from '{current}' to '{target}'"
        super().__init__({"status": [message]})


class IllegalActionError(ValidationError):
    """An action cannot be applied from the fulfillment's current status."""

    def __init__(self, current: str, action: str, allowed_actions: list[str]):
        self.current = current
        self.action = action
        self.allowed_actions = allowed_actions
        allowed = ", ".join(allowed_actions) or "none"
        super().__init__(
            {"action": [f"Action '{action}' is not allowed from status '{current}'. Allowed actions: {allowed}"]}
        )


class MissingTrackingNumberError(ValidationError):
    """Shipping was requested without a tracking number."""

    def __init__(self):
        super().__init__({"tracking_number": ["A tracking number is required to ship a fulfillment"]})


class PersistenceError(Exception):
    """The fulfillment store was unavailable or rejected the write."""


class ConcurrentUpdateError(PersistenceError):
    """The fulfillment changed since the caller last read it."""

    def __init__(self, fulfillment_id: str, expected: int, actual: int):
        self.fulfillment_id = fulfillment_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Fulfillment {fulfillment_id} is at revision {actual}, expected {expected}; reload and retry"
        )
