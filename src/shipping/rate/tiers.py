"""Rate matrix tiers for price- and weight-based shipping rates.

A matrix is an ordered list of bands ``{"min": .., "max": .., "rate": ..}``.
A band covers ``min <= value < max``; only the last band may leave ``max``
open (``null``), meaning unbounded above. Bands are ascending and do not
overlap.
"""

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from shipping.shared.money import to_decimal


@dataclass(frozen=True)
class RateTier:
    min: Decimal
    max: Decimal | None
    rate: Decimal

    def covers(self, value) -> bool:
        value = to_decimal(value)
        return value >= self.min and (self.max is None or value < self.max)

    def to_dict(self) -> dict:
        return {
            "min": float(self.min),
            "max": float(self.max) if self.max is not None else None,
            "rate": float(self.rate),
        }


def _number(band: dict, key: str, index: int) -> Decimal:
    try:
        return Decimal(str(band[key]))
    except (KeyError, InvalidOperation) as exc:
        raise ValueError(f"Tier {index}: '{key}' must be a number") from exc


def parse_rate_matrix(raw) -> tuple[RateTier, ...]:
    """Parse and validate a rate matrix. Raises ValueError when malformed."""
    if raw is None or raw == "":
        return ()
    bands = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(bands, list):
        raise ValueError("Rate matrix must be a list of tiers")

    tiers = []
    for index, band in enumerate(bands):
        if not isinstance(band, dict):
            raise ValueError(f"Tier {index}: must be an object with min, max and rate")
        low = _number(band, "min", index)
        high = None if band.get("max") is None else _number(band, "max", index)
        rate = _number(band, "rate", index)

        if low < 0:
            raise ValueError(f"Tier {index}: min cannot be negative")
        if rate < 0:
            raise ValueError(f"Tier {index}: rate cannot be negative")
        if high is None and index != len(bands) - 1:
            raise ValueError(f"Tier {index}: only the last tier may have an open max")
        if high is not None and high <= low:
            raise ValueError(f"Tier {index}: max must be greater than min")
        if tiers and low < tiers[-1].max:
            raise ValueError(f"Tier {index}: overlaps or precedes the previous tier")

        tiers.append(RateTier(min=low, max=high, rate=rate))
    return tuple(tiers)


def dump_rate_matrix(tiers) -> str:
    return json.dumps([tier.to_dict() for tier in tiers])
