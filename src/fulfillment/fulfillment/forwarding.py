"""Outgoing event forwarding: publishes fulfillment outcomes downstream.

Reacts to the shipped, delivered, failed and cancelled events after the
status change has been committed. Publishing is best-effort: failures are
logged and never propagate back into the status change.
"""

import structlog
from protean.utils.mixins import handle

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.events import (
    FulfillmentCancelled,
    FulfillmentDelivered,
    FulfillmentFailed,
    FulfillmentShipped,
)
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.publisher import get_publisher

logger = structlog.get_logger(__name__)

SHIPPED = "fulfillment.shipped"
DELIVERED = "fulfillment.delivered"
FAILED = "fulfillment.failed"
CANCELLED = "fulfillment.cancelled"


def _payload(event) -> dict:
    payload = event.to_dict()
    payload.pop("_metadata", None)
    return payload


def forward(event_name: str, event) -> None:
    """Emit ``event`` under ``event_name``, absorbing any publisher failure."""
    try:
        get_publisher().emit(event_name, _payload(event))
    except Exception as e:
        logger.error(
            "Failed to publish fulfillment event",
            event_name=event_name,
            fulfillment_id=str(event.fulfillment_id),
            error=str(e),
        )


@fulfillment.event_handler(part_of=Fulfillment)
class FulfillmentEventForwarder:
    """Publishes externally meaningful fulfillment outcomes."""

    @handle(FulfillmentShipped)
    def on_shipped(self, event: FulfillmentShipped) -> None:
        forward(SHIPPED, event)

    @handle(FulfillmentDelivered)
    def on_delivered(self, event: FulfillmentDelivered) -> None:
        forward(DELIVERED, event)

    @handle(FulfillmentFailed)
    def on_failed(self, event: FulfillmentFailed) -> None:
        forward(FAILED, event)

    @handle(FulfillmentCancelled)
    def on_cancelled(self, event: FulfillmentCancelled) -> None:
        forward(CANCELLED, event)
