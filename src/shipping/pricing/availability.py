"""Shipping method availability: every method priced for a destination.

``price_destination`` is the quote-time entry point: it resolves the
destination to a zone, prices each active method that has a rate in that zone
and returns the quotes cheapest first. "No zone" and "no methods" are normal
outcomes reported on the result, not exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from shipping.method.method import ShippingMethod
from shipping.pricing.calculator import OrderContext, ShippingRateCalculator
from shipping.pricing.resolver import ShippingZoneResolver
from shipping.rate.rate import ShippingRate
from shipping.shared.money import Money
from shipping.zone.location import Destination
from shipping.zone.zone import ShippingZone

logger = structlog.get_logger(__name__)


class AvailabilityOutcome(Enum):
    AVAILABLE = "available"
    NO_ZONE = "no_zone"
    NO_METHODS = "no_methods"


@dataclass(frozen=True)
class ShippingQuote:
    method_id: str
    method_code: str
    method_name: str
    charge: Money
    is_free_shipping: bool
    is_default: bool
    rate_id: str
    carrier_id: str | None = None
    carrier_name: str | None = None
    delivery_speed: str | None = None
    estimated_days_min: int | None = None
    estimated_days_max: int | None = None


@dataclass(frozen=True)
class AvailabilityResult:
    outcome: AvailabilityOutcome
    zone_id: str | None = None
    zone_name: str | None = None
    quotes: tuple[ShippingQuote, ...] = field(default_factory=tuple)

    @property
    def is_available(self) -> bool:
        return self.outcome == AvailabilityOutcome.AVAILABLE

    @property
    def default_quote(self) -> ShippingQuote | None:
        return next((q for q in self.quotes if q.is_default), None)


class ShippingMethodAvailability:
    def __init__(self, resolver=None, calculator=None):
        self.resolver = resolver or ShippingZoneResolver()
        self.calculator = calculator or ShippingRateCalculator()

    def quote(
        self,
        destination: Destination,
        context: OrderContext,
        zones,
        methods,
        rate_lookup,
        currency: str = "USD",
        origin_country: str | None = None,
    ) -> AvailabilityResult:
        """Price ``methods`` for ``destination``.

        ``rate_lookup(zone_id, method_id)`` returns the rate for a pair, or
        None when the method is not offered in that zone.
        """
        zone = self.resolver.resolve(destination, zones)
        if zone is None:
            logger.info("No shipping zone for destination", country=destination.country, state=destination.state)
            return AvailabilityResult(outcome=AvailabilityOutcome.NO_ZONE)

        quotes = []
        for method in methods:
            if not method.is_active:
                continue

            reason = method.unavailable_reason(context.order_value, context.weight, destination, origin_country)
            if reason:
                logger.debug("Shipping method skipped", method_code=method.code, reason=reason)
                continue

            rate = rate_lookup(str(zone.id), str(method.id))
            if rate is None:
                logger.debug("Shipping method skipped", method_code=method.code, reason="no rate for zone")
                continue
            if rate.currency != currency:
                logger.debug(
                    "Shipping method skipped",
                    method_code=method.code,
                    reason="rate currency mismatch",
                    rate_currency=rate.currency,
                )
                continue

            charge = self.calculator.calculate(rate, context)
            quotes.append(
                ShippingQuote(
                    method_id=str(method.id),
                    method_code=method.code,
                    method_name=method.name,
                    charge=charge,
                    is_free_shipping=charge.is_zero(),
                    is_default=bool(method.is_default),
                    rate_id=str(rate.id),
                    carrier_id=str(method.carrier_id) if method.carrier_id else None,
                    carrier_name=method.carrier_name,
                    delivery_speed=method.delivery_speed,
                    estimated_days_min=method.estimated_days_min,
                    estimated_days_max=method.estimated_days_max,
                )
            )

        if not quotes:
            logger.info("No shipping methods available for destination", zone_id=str(zone.id), zone_name=zone.name)
            return AvailabilityResult(
                outcome=AvailabilityOutcome.NO_METHODS,
                zone_id=str(zone.id),
                zone_name=zone.name,
            )

        quotes.sort(key=lambda q: q.charge.amount)
        return AvailabilityResult(
            outcome=AvailabilityOutcome.AVAILABLE,
            zone_id=str(zone.id),
            zone_name=zone.name,
            quotes=tuple(quotes),
        )


def price_destination(
    destination: Destination,
    context: OrderContext,
    currency: str = "USD",
    origin_country: str | None = None,
) -> AvailabilityResult:
    """Price every active shipping method for ``destination`` from the stores."""
    return ShippingMethodAvailability().quote(
        destination,
        context,
        zones=current_domain.repository_for(ShippingZone).active(),
        methods=current_domain.repository_for(ShippingMethod).active(),
        rate_lookup=current_domain.repository_for(ShippingRate).for_zone_and_method,
        currency=currency,
        origin_country=origin_country,
    )
