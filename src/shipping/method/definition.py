"""Shipping method definition: commands and handler."""

from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from shipping.domain import shipping
from shipping.method.method import DeliverySpeed, ShippingMethod, ShippingScope


@shipping.command(part_of="ShippingMethod")
class DefineShippingMethod:
    name = String(required=True, max_length=100)
    code = String(required=True, max_length=50)
    description = Text()
    carrier_id = Identifier()
    carrier_name = String(max_length=100)
    service_code = String(max_length=50)
    is_default = Boolean(default=False)
    delivery_speed = String(choices=DeliverySpeed, default=DeliverySpeed.STANDARD.value)
    scope = String(choices=ShippingScope, default=ShippingScope.BOTH.value)
    handling_days = Integer(default=0, min_value=0)
    estimated_days_min = Integer(min_value=0)
    estimated_days_max = Integer(min_value=0)
    priority = Integer(default=0)
    min_weight = Float(min_value=0.0)
    max_weight = Float(min_value=0.0)
    min_order_value = Float(min_value=0.0)
    max_order_value = Float(min_value=0.0)


@shipping.command(part_of="ShippingMethod")
class DeactivateShippingMethod:
    method_id = Identifier(required=True)


@shipping.command_handler(part_of=ShippingMethod)
class ShippingMethodHandler:
    @handle(DefineShippingMethod)
    def define_method(self, command):
        repo = current_domain.repository_for(ShippingMethod)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Shipping method '{command.code}' already exists"]})

        now = datetime.now(UTC)
        method = ShippingMethod(
            name=command.name,
            code=command.code,
            description=command.description,
            carrier_id=command.carrier_id,
            carrier_name=command.carrier_name,
            service_code=command.service_code,
            is_default=command.is_default,
            delivery_speed=command.delivery_speed,
            scope=command.scope,
            handling_days=command.handling_days,
            estimated_days_min=command.estimated_days_min,
            estimated_days_max=command.estimated_days_max,
            priority=command.priority,
            min_weight=command.min_weight,
            max_weight=command.max_weight,
            min_order_value=command.min_order_value,
            max_order_value=command.max_order_value,
            created_at=now,
            updated_at=now,
        )
        repo.add(method)
        return str(method.id)

    @handle(DeactivateShippingMethod)
    def deactivate_method(self, command):
        repo = current_domain.repository_for(ShippingMethod)
        method = repo.get(command.method_id)
        method.deactivate()
        repo.add(method)
