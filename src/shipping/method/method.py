"""ShippingMethod aggregate: a way of shipping offered to customers."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from shipping.domain import shipping
from shipping.shared.money import to_decimal
from shipping.zone.location import Destination


class DeliverySpeed(Enum):
    ECONOMY = "economy"
    STANDARD = "standard"
    EXPEDITED = "expedited"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    SAME_DAY = "same_day"


class ShippingScope(Enum):
    DOMESTIC = "domestic"
    INTERNATIONAL = "international"
    BOTH = "both"


@shipping.aggregate
class ShippingMethod:
    name = String(required=True, max_length=100)
    code = String(required=True, max_length=50)
    description = Text()
    carrier_id = Identifier()
    carrier_name = String(max_length=100)
    service_code = String(max_length=50)
    is_active = Boolean(default=True)
    is_default = Boolean(default=False)
    delivery_speed = String(choices=DeliverySpeed, default=DeliverySpeed.STANDARD.value)
    scope = String(choices=ShippingScope, default=ShippingScope.BOTH.value)
    handling_days = Integer(default=0, min_value=0)
    estimated_days_min = Integer(min_value=0)
    estimated_days_max = Integer(min_value=0)
    # Lower values are listed first
    priority = Integer(default=0)

    # Applicability bounds (weight in kilograms)
    min_weight = Float(min_value=0.0)
    max_weight = Float(min_value=0.0)
    min_order_value = Float(min_value=0.0)
    max_order_value = Float(min_value=0.0)

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def bounds_must_be_ordered(self):
        pairs = (
            ("weight", self.min_weight, self.max_weight),
            ("order_value", self.min_order_value, self.max_order_value),
            ("estimated_days", self.estimated_days_min, self.estimated_days_max),
        )
        for label, low, high in pairs:
            if low is not None and high is not None and low > high:
                raise ValidationError({f"max_{label}": [f"Maximum {label} cannot be below minimum"]})

    def unavailable_reason(self, order_value, weight=None, destination: Destination | None = None, origin_country=None):
        """Why this method cannot carry the order, or None when it can."""
        if not self.is_active:
            return "inactive"

        value = to_decimal(order_value)
        if self.min_order_value is not None and value < to_decimal(self.min_order_value):
            return "order value below minimum"
        if self.max_order_value is not None and value > to_decimal(self.max_order_value):
            return "order value above maximum"

        if weight is not None:
            if self.min_weight is not None and to_decimal(weight) < to_decimal(self.min_weight):
                return "weight below minimum"
            if self.max_weight is not None and to_decimal(weight) > to_decimal(self.max_weight):
                return "weight above maximum"

        if origin_country and destination is not None:
            domestic = origin_country.strip().upper() == (destination.country or "").strip().upper()
            if self.scope == ShippingScope.DOMESTIC.value and not domestic:
                return "domestic only"
            if self.scope == ShippingScope.INTERNATIONAL.value and domestic:
                return "international only"

        return None

    def is_applicable(self, order_value, weight=None, destination=None, origin_country=None) -> bool:
        return self.unavailable_reason(order_value, weight, destination, origin_country) is None

    def deactivate(self) -> None:
        self.is_active = False
        self.is_default = False
        self.updated_at = datetime.now(UTC)
