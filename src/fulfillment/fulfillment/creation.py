"""Fulfillment creation: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment, SourceType


@fulfillment.command(part_of="Fulfillment")
class CreateFulfillment:
    """Create a new pending fulfillment for (part of) an order."""

    order_id = Identifier(required=True)
    order_number = String(max_length=100)
    source_type = String(choices=SourceType, default=SourceType.WAREHOUSE.value)
    source_id = Identifier(required=True)
    merchant_id = Identifier()
    supplier_id = Identifier()
    store_id = Identifier()
    channel_id = Identifier()
    shipping_method_id = String(max_length=100)
    shipping_method_name = String(max_length=100)
    carrier_id = String(max_length=100)
    carrier_name = String(max_length=100)
    ship_from = Text()  # JSON address
    ship_to = Text()  # JSON address
    items = Text(required=True)  # JSON list of item dicts
    shipping_cost = Float(min_value=0.0)
    insurance_cost = Float(min_value=0.0)
    currency = String(max_length=3, default="USD")
    notes = Text()


def _load(value):
    if value is None or value == "":
        return None
    return json.loads(value) if isinstance(value, str) else value


_OPTIONAL_ATTRIBUTES = (
    "order_number",
    "merchant_id",
    "supplier_id",
    "store_id",
    "channel_id",
    "shipping_method_id",
    "shipping_method_name",
    "carrier_id",
    "carrier_name",
    "shipping_cost",
    "insurance_cost",
    "currency",
    "notes",
)


@fulfillment.command_handler(part_of=Fulfillment)
class CreateFulfillmentHandler:
    @handle(CreateFulfillment)
    def create_fulfillment(self, command):
        attributes = {
            name: getattr(command, name) for name in _OPTIONAL_ATTRIBUTES if getattr(command, name) is not None
        }
        ff = Fulfillment.create(
            order_id=command.order_id,
            source_type=command.source_type,
            source_id=command.source_id,
            items_data=_load(command.items) or [],
            ship_from=_load(command.ship_from),
            ship_to=_load(command.ship_to),
            **attributes,
        )
        current_domain.repository_for(Fulfillment).add(ff)
        return str(ff.id)
