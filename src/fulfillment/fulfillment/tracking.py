"""Fulfillment tracking: command and handler.

Corrects the carrier tracking number or URL after shipment without changing
the fulfillment's status.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.fulfillment import Fulfillment


@fulfillment.command(part_of="Fulfillment")
class UpdateTracking:
    """Replace the tracking details of a shipment that is underway."""

    fulfillment_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=255)
    tracking_url = String(max_length=500)


@fulfillment.command_handler(part_of=Fulfillment)
class TrackingHandler:
    @handle(UpdateTracking)
    def update_tracking(self, command):
        repo = current_domain.repository_for(Fulfillment)
        ff = repo.get(command.fulfillment_id)
        ff.update_tracking(command.tracking_number, command.tracking_url)
        repo.add(ff)
