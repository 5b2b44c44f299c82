"""Shipping bounded context: destination zoning and rate calculation.

Matches a destination address to a geographic zone and prices every active
shipping method for that zone from flat, per-item, tiered and capped rules.
"""

from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

shipping = Domain(name="shipping")
