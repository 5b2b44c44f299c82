"""Shared BDD fixtures and step definitions for the Fulfillment domain."""

import pytest
from fulfillment.fulfillment.coordinator import ActionContext, FulfillmentAction, FulfillmentStatusCoordinator
from fulfillment.fulfillment.events import (
    FulfillmentCancelled,
    FulfillmentCreated,
    FulfillmentDelivered,
    FulfillmentFailed,
    FulfillmentShipped,
)
from fulfillment.fulfillment.fulfillment import Fulfillment
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_FULFILLMENT_EVENT_CLASSES = {
    "FulfillmentCreated": FulfillmentCreated,
    "FulfillmentShipped": FulfillmentShipped,
    "FulfillmentDelivered": FulfillmentDelivered,
    "FulfillmentFailed": FulfillmentFailed,
    "FulfillmentCancelled": FulfillmentCancelled,
}

_DEFAULT_ITEMS = [
    {
        "order_item_id": "oi-1",
        "product_id": "prod-kb",
        "sku": "KB-MECH-001",
        "quantity_ordered": 1,
    },
    {
        "order_item_id": "oi-2",
        "product_id": "prod-mp",
        "sku": "MP-XL-BLK",
        "quantity_ordered": 2,
    },
]

_ACTIONS_TO = {
    "pending": (),
    "assigned": ("start_processing",),
    "picking": ("start_processing", "start_picking"),
    "packing": ("start_processing", "start_picking", "complete_picking"),
    "ready_to_ship": ("start_processing", "start_picking", "complete_picking", "complete_packing"),
    "shipped": ("start_processing", "start_picking", "complete_picking", "complete_packing", "ship"),
    "in_transit": (
        "start_processing",
        "start_picking",
        "complete_picking",
        "complete_packing",
        "ship",
        "in_transit",
    ),
    "delivered": ("start_processing", "start_picking", "complete_picking", "complete_packing", "ship", "deliver"),
}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def coordinator():
    return FulfillmentStatusCoordinator()


def build_fulfillment(status: str, coordinator) -> Fulfillment:
    ff = Fulfillment.create(order_id="ord-bdd-001", source_id="wh-bdd", items_data=_DEFAULT_ITEMS)
    for action in _ACTIONS_TO[status]:
        context = ActionContext(tracking_number="BDD-TRK-1") if action == "ship" else None
        coordinator.apply(ff, FulfillmentAction(action), context)
    ff._events.clear()
    return ff


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a pending fulfillment", target_fixture="ff")
def pending_fulfillment(coordinator):
    return build_fulfillment("pending", coordinator)


@given(parsers.cfparse('a fulfillment in "{status}" status'), target_fixture="ff")
def fulfillment_in_status(status, coordinator):
    return build_fulfillment(status, coordinator)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the fulfillment status is "{status}"'))
def fulfillment_status_is(ff, status):
    assert ff.status == status


@then("the fulfillment action fails with a validation error")
def fulfillment_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} event is raised"))
def fulfillment_event_raised(ff, event_type):
    event_cls = _FULFILLMENT_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in ff._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in ff._events]}"


@then("no event is raised")
def no_event_raised(ff):
    assert ff._events == []


@then(parsers.cfparse('the tracking number is "{tracking_number}"'))
def tracking_number_is(ff, tracking_number):
    assert ff.tracking_number == tracking_number


@then(parsers.cfparse('the cancellation reason is "{reason}"'))
def cancellation_reason_is(ff, reason):
    assert ff.cancellation_reason == reason
