"""ShippingRate aggregate: the price rule for one method within one zone."""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from shipping.domain import shipping
from shipping.rate.tiers import dump_rate_matrix, parse_rate_matrix
from shipping.shared.money import VALID_CURRENCIES


def _encode_tiers(tiers) -> str | None:
    if not tiers:
        return None
    try:
        return dump_rate_matrix(parse_rate_matrix(tiers))
    except ValueError as exc:
        raise ValidationError({"rate_matrix": [str(exc)]})


class RateType(Enum):
    FLAT = "flat"
    ITEM_BASED = "itemBased"
    PRICE_BASED = "priceBased"
    WEIGHT_BASED = "weightBased"
    FREE = "free"


@shipping.aggregate
class ShippingRate:
    zone_id = Identifier(required=True)
    method_id = Identifier(required=True)
    name = String(max_length=100)
    description = Text()
    is_active = Boolean(default=True)
    rate_type = String(required=True, choices=RateType)
    base_rate = Float(default=0.0, min_value=0.0)
    per_item_rate = Float(default=0.0, min_value=0.0)
    free_threshold = Float(min_value=0.0)
    rate_matrix = Text()  # JSON list of {min, max, rate} tiers
    min_rate = Float(min_value=0.0)
    max_rate = Float(min_value=0.0)
    currency = String(max_length=3, default="USD")
    # Lowest value wins when a zone and method have several active rates
    priority = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def rate_matrix_must_be_ascending_and_non_overlapping(self):
        try:
            parse_rate_matrix(self.rate_matrix)
        except ValueError as exc:
            raise ValidationError({"rate_matrix": [str(exc)]})

    @invariant.post
    def min_rate_cannot_exceed_max_rate(self):
        if self.min_rate is not None and self.max_rate is not None and self.min_rate > self.max_rate:
            raise ValidationError({"max_rate": ["Maximum rate cannot be below minimum rate"]})

    @invariant.post
    def currency_must_be_supported(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValidationError({"currency": [f"Unsupported currency: {self.currency}"]})

    @classmethod
    def define(cls, zone_id: str, method_id: str, rate_type: str = RateType.FLAT.value, tiers=None, **attributes):
        now = datetime.now(UTC)
        return cls(
            zone_id=zone_id,
            method_id=method_id,
            rate_type=rate_type,
            rate_matrix=_encode_tiers(tiers),
            created_at=now,
            updated_at=now,
            **attributes,
        )

    @property
    def tiers(self):
        return parse_rate_matrix(self.rate_matrix)

    def update_rate_matrix(self, tiers) -> None:
        """Replace the tier matrix; validated before it is stored."""
        self.rate_matrix = _encode_tiers(tiers)
        self.updated_at = datetime.now(UTC)

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = datetime.now(UTC)
