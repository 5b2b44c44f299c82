"""Fulfillment item packing: command and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment


@fulfillment.command(part_of="Fulfillment")
class RecordItemPacked:
    """Record that units of an item were packed into the shipment."""

    fulfillment_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(min_value=1)


@fulfillment.command_handler(part_of=Fulfillment)
class PackingHandler:
    @handle(RecordItemPacked)
    def record_item_packed(self, command):
        repo = current_domain.repository_for(Fulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.record_item_packed(str(command.item_id), quantity=command.quantity)
        repo.add(ff)
