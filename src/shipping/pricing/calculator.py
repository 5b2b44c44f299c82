"""Shipping rate calculation: prices one rate rule for one order.

Pure: the calculator only reads the rate record and the order context.
"""

from dataclasses import dataclass
from decimal import Decimal

from shipping.rate.rate import RateType
from shipping.shared.money import Money, to_decimal


@dataclass(frozen=True)
class OrderContext:
    """What is being shipped. Weight is in kilograms."""

    order_value: float = 0.0
    item_count: int = 0
    weight: float | None = None


class ShippingRateCalculator:
    def calculate(self, rate, context: OrderContext) -> Money:
        """Compute the charge for ``rate`` in the rate's currency.

        A configured free-shipping threshold reached by the order value forces
        the charge to zero before the min/max clamp is applied, so a minimum
        never overrides free shipping.
        """
        if rate.rate_type == RateType.FREE.value or self.qualifies_for_free_shipping(rate, context):
            return Money.zero(rate.currency)

        charge = self._clamp(rate, self._raw_charge(rate, context))
        return Money.of(charge, rate.currency)

    def qualifies_for_free_shipping(self, rate, context: OrderContext) -> bool:
        threshold = to_decimal(rate.free_threshold)
        return threshold > 0 and to_decimal(context.order_value) >= threshold

    def _raw_charge(self, rate, context: OrderContext) -> Decimal:
        base = to_decimal(rate.base_rate)
        rate_type = RateType(rate.rate_type)

        if rate_type == RateType.FLAT:
            return base
        if rate_type == RateType.ITEM_BASED:
            return base + to_decimal(rate.per_item_rate) * (context.item_count or 0)
        if rate_type == RateType.PRICE_BASED:
            return self._tier_rate(rate, context.order_value, base)
        if rate_type == RateType.WEIGHT_BASED:
            if context.weight is None:
                return base
            return self._tier_rate(rate, context.weight, base)
        return base

    def _tier_rate(self, rate, value, fallback: Decimal) -> Decimal:
        for tier in rate.tiers:
            if tier.covers(value):
                return tier.rate
        return fallback

    def _clamp(self, rate, charge: Decimal) -> Decimal:
        if rate.min_rate is not None:
            charge = max(charge, to_decimal(rate.min_rate))
        if rate.max_rate is not None:
            charge = min(charge, to_decimal(rate.max_rate))
        return charge
