"""Repository for the ShippingRate aggregate."""

from shipping.domain import shipping
from shipping.rate.rate import ShippingRate


@shipping.repository(part_of=ShippingRate)
class ShippingRateRepository:
    def for_zone_and_method(self, zone_id: str, method_id: str) -> ShippingRate | None:
        """The authoritative active rate for a zone and method.

        The lowest priority value wins; storage order breaks ties.
        """
        rates = self._dao.query.filter(zone_id=zone_id, method_id=method_id, is_active=True).limit(None).all().items
        if not rates:
            return None
        return min(rates, key=lambda r: r.priority or 0)

    def for_zone(self, zone_id: str) -> list[ShippingRate]:
        return self._dao.query.filter(zone_id=zone_id).limit(None).all().items
