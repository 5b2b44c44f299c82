"""Repository for the ShippingZone aggregate."""

from shipping.domain import shipping
from shipping.zone.zone import ShippingZone


@shipping.repository(part_of=ShippingZone)
class ShippingZoneRepository:
    def find_by_name(self, name: str) -> ShippingZone | None:
        zones = self._dao.query.filter(name=name).limit(None).all().items
        return zones[0] if zones else None

    def active(self) -> list[ShippingZone]:
        """All active zones, in storage order."""
        return self._dao.query.filter(is_active=True).limit(None).all().items
