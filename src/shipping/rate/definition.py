"""Shipping rate definition: commands and handler.

Tier matrices are validated here, at write time, so pricing never has to
cope with a malformed matrix.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.method.method import ShippingMethod
from shipping.rate.rate import RateType, ShippingRate
from shipping.zone.zone import ShippingZone


@shipping.command(part_of="ShippingRate")
class DefineShippingRate:
    zone_id = Identifier(required=True)
    method_id = Identifier(required=True)
    name = String(max_length=100)
    rate_type = String(required=True, choices=RateType)
    base_rate = Float(default=0.0, min_value=0.0)
    per_item_rate = Float(default=0.0, min_value=0.0)
    free_threshold = Float(min_value=0.0)
    rate_matrix = Text()  # JSON list of {min, max, rate} tiers
    min_rate = Float(min_value=0.0)
    max_rate = Float(min_value=0.0)
    currency = String(max_length=3, default="USD")
    priority = Integer(default=0)


@shipping.command(part_of="ShippingRate")
class UpdateRateMatrix:
    rate_id = Identifier(required=True)
    rate_matrix = Text(required=True)


def _tiers(raw):
    try:
        return json.loads(raw) if raw else None
    except ValueError as exc:
        raise ValidationError({"rate_matrix": [f"Rate matrix is not valid JSON: {exc}"]})


@shipping.command_handler(part_of=ShippingRate)
class ShippingRateHandler:
    @handle(DefineShippingRate)
    def define_rate(self, command):
        # Both ends of the link must exist
        current_domain.repository_for(ShippingZone).get(command.zone_id)
        current_domain.repository_for(ShippingMethod).get(command.method_id)

        rate = ShippingRate.define(
            zone_id=command.zone_id,
            method_id=command.method_id,
            rate_type=command.rate_type,
            name=command.name,
            base_rate=command.base_rate,
            per_item_rate=command.per_item_rate,
            free_threshold=command.free_threshold,
            min_rate=command.min_rate,
            max_rate=command.max_rate,
            currency=command.currency,
            priority=command.priority,
            tiers=_tiers(command.rate_matrix),
        )
        current_domain.repository_for(ShippingRate).add(rate)
        return str(rate.id)

    @handle(UpdateRateMatrix)
    def update_rate_matrix(self, command):
        repo = current_domain.repository_for(ShippingRate)
        rate = repo.get(command.rate_id)
        rate.update_rate_matrix(_tiers(command.rate_matrix))
        repo.add(rate)
