"""Shipping zone definition: commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.zone.zone import ShippingZone


@shipping.command(part_of="ShippingZone")
class DefineShippingZone:
    name = String(required=True, max_length=100)
    description = Text()
    priority = Integer(default=0)
    locations = Text(default="[]")  # JSON list of location patterns
    excluded_locations = Text(default="[]")


@shipping.command(part_of="ShippingZone")
class DeactivateShippingZone:
    zone_id = Identifier(required=True)


@shipping.command_handler(part_of=ShippingZone)
class ShippingZoneHandler:
    @handle(DefineShippingZone)
    def define_zone(self, command):
        repo = current_domain.repository_for(ShippingZone)
        if repo.find_by_name(command.name) is not None:
            raise ValidationError({"name": [f"Shipping zone '{command.name}' already exists"]})

        zone = ShippingZone.define(
            name=command.name,
            description=command.description,
            priority=command.priority or 0,
            locations=json.loads(command.locations or "[]"),
            excluded_locations=json.loads(command.excluded_locations or "[]"),
        )
        repo.add(zone)
        return str(zone.id)

    @handle(DeactivateShippingZone)
    def deactivate_zone(self, command):
        repo = current_domain.repository_for(ShippingZone)
        zone = repo.get(command.zone_id)
        zone.deactivate()
        repo.add(zone)
