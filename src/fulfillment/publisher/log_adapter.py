"""Log publisher: writes outgoing events to the structured log."""

import structlog

from fulfillment.publisher.port import EventPublisherPort

logger = structlog.get_logger(__name__)


class LogPublisher(EventPublisherPort):
    def emit(self, event_name: str, payload: dict) -> None:
        logger.info(
            "Fulfillment event published",
            event_name=event_name,
            fulfillment_id=payload.get("fulfillment_id"),
            payload=payload,
        )
