"""Fulfillment domain events: immutable facts about fulfillment state changes.

Only creation and the four externally meaningful outcomes (shipped,
delivered, failed, cancelled) raise events. Intermediate warehouse steps are
recorded on the aggregate without an event.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="Fulfillment")
class FulfillmentCreated:
    """A fulfillment was created for an order."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    source_type = String(required=True)
    source_id = Identifier(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class FulfillmentShipped:
    """The shipment was handed to the carrier."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    tracking_url = String()
    carrier_id = String()
    carrier_name = String()
    weight = Float()
    package_count = Integer()
    shipped_items = Text()  # JSON list of {order_item_id, quantity}
    shipped_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class FulfillmentDelivered:
    """The carrier confirmed delivery."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String()
    delivered_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class FulfillmentFailed:
    """The fulfillment could not be completed."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@fulfillment.event(part_of="Fulfillment")
class FulfillmentCancelled:
    """The fulfillment was cancelled before delivery."""

    __version__ = 1

    fulfillment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
