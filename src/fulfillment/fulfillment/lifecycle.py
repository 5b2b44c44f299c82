"""Fulfillment lifecycle: statuses and the transition table.

The table is the single source of truth for legal status changes. It is
frozen at import time; the aggregate validates every status change against
it and the status coordinator derives its action rules from it.

    pending → assigned → picking → picked → packing → packed → ready_to_ship
    ready_to_ship → shipped → in_transit → out_for_delivery → delivered
    delivered → returned
    {picking … out_for_delivery} → failed
    {pending … ready_to_ship} → cancelled
"""

from enum import Enum
from types import MappingProxyType


class FulfillmentStatus(Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKING = "picking"
    PICKED = "picked"
    PACKING = "packing"
    PACKED = "packed"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"
    RETURNED = "returned"


_S = FulfillmentStatus

TRANSITIONS = MappingProxyType(
    {
        _S.PENDING: frozenset({_S.ASSIGNED, _S.CANCELLED}),
        _S.ASSIGNED: frozenset({_S.PICKING, _S.CANCELLED}),
        _S.PICKING: frozenset({_S.PICKED, _S.FAILED, _S.CANCELLED}),
        _S.PICKED: frozenset({_S.PACKING, _S.FAILED, _S.CANCELLED}),
        _S.PACKING: frozenset({_S.PACKED, _S.FAILED, _S.CANCELLED}),
        _S.PACKED: frozenset({_S.READY_TO_SHIP, _S.FAILED, _S.CANCELLED}),
        _S.READY_TO_SHIP: frozenset({_S.SHIPPED, _S.FAILED, _S.CANCELLED}),
        _S.SHIPPED: frozenset({_S.IN_TRANSIT, _S.DELIVERED, _S.FAILED}),
        _S.IN_TRANSIT: frozenset({_S.OUT_FOR_DELIVERY, _S.DELIVERED, _S.FAILED}),
        _S.OUT_FOR_DELIVERY: frozenset({_S.DELIVERED, _S.FAILED}),
        _S.DELIVERED: frozenset({_S.RETURNED}),
        _S.FAILED: frozenset(),  # terminal
        _S.CANCELLED: frozenset(),  # terminal
        _S.RETURNED: frozenset(),  # terminal
    }
)

TERMINAL_STATUSES = frozenset({_S.FAILED, _S.CANCELLED, _S.RETURNED})

# Statuses after which the fulfillment needs no further work.
COMPLETE_STATUSES = frozenset({_S.DELIVERED, _S.CANCELLED, _S.RETURNED})


def allowed_targets(current: FulfillmentStatus, transitions=TRANSITIONS) -> frozenset:
    return transitions.get(current, frozenset())


def can_transition(current: FulfillmentStatus, target: FulfillmentStatus, transitions=TRANSITIONS) -> bool:
    return target in allowed_targets(current, transitions)


def can_walk(current: FulfillmentStatus, route, transitions=TRANSITIONS) -> bool:
    """Return True when every step of ``route`` is legal starting from ``current``."""
    status = current
    for step in route:
        if not can_transition(status, step, transitions):
            return False
        status = step
    return True
