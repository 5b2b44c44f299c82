"""Fulfillment status coordinator: turns caller actions into status changes.

Callers (warehouse staff, carrier webhooks) speak in actions such as
``start_picking`` or ``ship``. Each action maps to exactly one target status
through a route of one or more steps; every step is an ordinary aggregate
transition, so the lifecycle table stays the only authority on legality.

The set of statuses an action may start from is derived from the transition
table, not declared separately:

    start_processing   pending → assigned
    start_picking      assigned → picking
    complete_picking   picking → picked → packing
    complete_packing   packing → packed → ready_to_ship
    ship               ready_to_ship → shipped
    in_transit         shipped → in_transit
    out_for_delivery   in_transit → out_for_delivery
    deliver            shipped | in_transit | out_for_delivery → delivered
    fail               picking … out_for_delivery → failed
    return             delivered → returned
    cancel             pending … ready_to_ship → cancelled
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from fulfillment.fulfillment.errors import (
    ConcurrentUpdateError,
    IllegalActionError,
    MissingTrackingNumberError,
)
from fulfillment.fulfillment.lifecycle import TRANSITIONS, FulfillmentStatus, can_walk


class FulfillmentAction(Enum):
    START_PROCESSING = "start_processing"
    START_PICKING = "start_picking"
    COMPLETE_PICKING = "complete_picking"
    COMPLETE_PACKING = "complete_packing"
    SHIP = "ship"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVER = "deliver"
    FAIL = "fail"
    RETURN = "return"
    CANCEL = "cancel"


_A = FulfillmentAction
_S = FulfillmentStatus

ACTION_ROUTES = MappingProxyType(
    {
        _A.START_PROCESSING: (_S.ASSIGNED,),
        _A.START_PICKING: (_S.PICKING,),
        _A.COMPLETE_PICKING: (_S.PICKED, _S.PACKING),
        _A.COMPLETE_PACKING: (_S.PACKED, _S.READY_TO_SHIP),
        _A.SHIP: (_S.SHIPPED,),
        _A.IN_TRANSIT: (_S.IN_TRANSIT,),
        _A.OUT_FOR_DELIVERY: (_S.OUT_FOR_DELIVERY,),
        _A.DELIVER: (_S.DELIVERED,),
        _A.FAIL: (_S.FAILED,),
        _A.RETURN: (_S.RETURNED,),
        _A.CANCEL: (_S.CANCELLED,),
    }
)


@dataclass(frozen=True)
class ActionContext:
    """Optional data accompanying an action."""

    tracking_number: str | None = None
    tracking_url: str | None = None
    carrier_id: str | None = None
    carrier_name: str | None = None
    location: str | None = None
    reason: str | None = None
    package_weight: float | None = None
    package_count: int | None = None
    expected_revision: int | None = None
    performed_by: str | None = None


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a successfully applied action."""

    fulfillment_id: str
    action: str
    previous_status: str
    new_status: str
    tracking_number: str | None
    revision: int


class FulfillmentStatusCoordinator:
    """Validates and applies actions to a loaded Fulfillment.

    The coordinator does not load or persist; the command handler wraps it in
    a unit of work so the status change and its side payload commit together.
    """

    def __init__(self, transitions=TRANSITIONS, routes=ACTION_ROUTES):
        self.transitions = transitions
        self.routes = routes

    def target_for(self, action: FulfillmentAction) -> FulfillmentStatus:
        return self.routes[action][-1]

    def is_allowed(self, action: FulfillmentAction, status: FulfillmentStatus) -> bool:
        return can_walk(status, self.routes[action], self.transitions)

    def allowed_actions(self, status: FulfillmentStatus) -> list[FulfillmentAction]:
        return [action for action in self.routes if self.is_allowed(action, status)]

    def apply(self, ff, action: FulfillmentAction, context: ActionContext | None = None) -> ActionResult:
        context = context or ActionContext()
        current = FulfillmentStatus(ff.status)

        if context.expected_revision is not None and context.expected_revision != (ff.revision or 0):
            raise ConcurrentUpdateError(str(ff.id), context.expected_revision, ff.revision or 0)

        if not self.is_allowed(action, current):
            raise IllegalActionError(
                current.value,
                action.value,
                [a.value for a in self.allowed_actions(current)],
            )

        if action == FulfillmentAction.SHIP and not (context.tracking_number or "").strip():
            raise MissingTrackingNumberError()

        for step in self.routes[action]:
            self._perform(ff, step, context)

        return ActionResult(
            fulfillment_id=str(ff.id),
            action=action.value,
            previous_status=current.value,
            new_status=ff.status,
            tracking_number=ff.tracking_number,
            revision=ff.revision,
        )

    def _perform(self, ff, step: FulfillmentStatus, context: ActionContext) -> None:
        if step == _S.ASSIGNED:
            ff.assign()
        elif step == _S.PICKING:
            ff.start_picking()
        elif step == _S.PICKED:
            ff.complete_picking()
        elif step == _S.PACKING:
            ff.start_packing()
        elif step == _S.PACKED:
            ff.complete_packing(weight=context.package_weight, package_count=context.package_count)
        elif step == _S.READY_TO_SHIP:
            ff.mark_ready_to_ship()
        elif step == _S.SHIPPED:
            ff.ship(
                context.tracking_number,
                tracking_url=context.tracking_url,
                carrier_id=context.carrier_id,
                carrier_name=context.carrier_name,
            )
        elif step == _S.IN_TRANSIT:
            ff.mark_in_transit(location=context.location)
        elif step == _S.OUT_FOR_DELIVERY:
            ff.mark_out_for_delivery(location=context.location)
        elif step == _S.DELIVERED:
            ff.mark_delivered(location=context.location)
        elif step == _S.FAILED:
            ff.mark_failed(reason=context.reason, location=context.location)
        elif step == _S.RETURNED:
            ff.mark_returned(reason=context.reason)
        elif step == _S.CANCELLED:
            ff.cancel(reason=context.reason)
        else:
            raise ValueError(f"No handler for status step: {step.value}")
