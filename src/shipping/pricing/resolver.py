"""Shipping zone resolution: picks the one zone that governs a destination."""

from shipping.zone.location import Destination


class ShippingZoneResolver:
    """Returns the best-matching active zone for a destination.

    A zone whose exclusions match the destination is disqualified even when an
    inclusion also matches. Among the remaining matches the highest priority
    wins; the sort is stable, so storage order breaks ties.
    """

    def matching(self, destination: Destination, zones) -> list:
        candidates = [zone for zone in zones if zone.is_active and zone.matches(destination)]
        return sorted(candidates, key=lambda zone: zone.priority or 0, reverse=True)

    def resolve(self, destination: Destination, zones):
        candidates = self.matching(destination, zones)
        return candidates[0] if candidates else None
