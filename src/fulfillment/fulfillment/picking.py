"""Fulfillment item picking: command and handler.

Records picks of individual order lines while the fulfillment is in the
picking phase. Partial picks accumulate until the ordered quantity is reached.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment


@fulfillment.command(part_of="Fulfillment")
class RecordItemPicked:
    """Record that units of an item were picked from their location."""

    fulfillment_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(min_value=1)
    warehouse_location = String(max_length=100)
    bin_location = String(max_length=100)
    serial_numbers = Text()  # JSON list of serial numbers
    lot_number = String(max_length=100)


@fulfillment.command_handler(part_of=Fulfillment)
class PickingHandler:
    @handle(RecordItemPicked)
    def record_item_picked(self, command):
        repo = current_domain.repository_for(Fulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.record_item_picked(
            str(command.item_id),
            quantity=command.quantity,
            warehouse_location=command.warehouse_location,
            bin_location=command.bin_location,
            serial_numbers=json.loads(command.serial_numbers) if command.serial_numbers else None,
            lot_number=command.lot_number,
        )
        repo.add(ff)
