"""Fulfillment bounded context: shipment lifecycle from warehouse to doorstep.

Owns the Fulfillment aggregate and its transition table. Warehouse staff and
carrier webhooks drive a fulfillment through picking, packing, shipping and
delivery by issuing actions to the status coordinator.
"""

from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

fulfillment = Domain(name="fulfillment")
