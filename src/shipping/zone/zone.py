"""ShippingZone aggregate: a named set of destinations sharing rate rules."""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text

from shipping.domain import shipping
from shipping.zone.location import AnyLocation, Destination, parse_location_patterns


@shipping.aggregate
class ShippingZone:
    name = String(required=True, max_length=100)
    description = Text()
    is_active = Boolean(default=True)
    # Higher priority wins when several zones match a destination
    priority = Integer(default=0)
    locations = Text(default="[]")  # JSON list of location patterns
    excluded_locations = Text(default="[]")  # JSON list of location patterns
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def location_patterns_must_be_valid(self):
        for field_name in ("locations", "excluded_locations"):
            try:
                parse_location_patterns(getattr(self, field_name))
            except ValueError as exc:
                raise ValidationError({field_name: [str(exc)]})

    @classmethod
    def define(
        cls,
        name: str,
        locations: list[str] | None = None,
        excluded_locations: list[str] | None = None,
        priority: int = 0,
        description: str | None = None,
        is_active: bool = True,
    ):
        now = datetime.now(UTC)
        return cls(
            name=name,
            description=description,
            is_active=is_active,
            priority=priority,
            locations=json.dumps(list(locations or [])),
            excluded_locations=json.dumps(list(excluded_locations or [])),
            created_at=now,
            updated_at=now,
        )

    @property
    def inclusion_patterns(self):
        return parse_location_patterns(self.locations)

    @property
    def exclusion_patterns(self):
        return parse_location_patterns(self.excluded_locations)

    def is_catch_all(self) -> bool:
        patterns = self.inclusion_patterns
        return not patterns or any(isinstance(p, AnyLocation) for p in patterns)

    def matches(self, destination: Destination) -> bool:
        """True when the destination is covered and not excluded."""
        if any(p.matches(destination) for p in self.exclusion_patterns):
            return False
        if self.is_catch_all():
            return True
        return any(p.matches(destination) for p in self.inclusion_patterns)

    def update_locations(self, locations: list[str], excluded_locations: list[str] | None = None) -> None:
        self.locations = json.dumps(list(locations))
        if excluded_locations is not None:
            self.excluded_locations = json.dumps(list(excluded_locations))
        self.updated_at = datetime.now(UTC)

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = datetime.now(UTC)
