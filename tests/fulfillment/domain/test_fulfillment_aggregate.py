"""Tests for the Fulfillment aggregate: creation and status changes."""

import json

import pytest
from fulfillment.fulfillment.errors import InvalidTransitionError, MissingTrackingNumberError
from fulfillment.fulfillment.events import (
    FulfillmentCancelled,
    FulfillmentCreated,
    FulfillmentDelivered,
    FulfillmentFailed,
    FulfillmentShipped,
)
from fulfillment.fulfillment.fulfillment import Fulfillment
from fulfillment.fulfillment.lifecycle import FulfillmentStatus
from protean.exceptions import ValidationError


def _make_items():
    return [
        {"order_item_id": "oi-1", "product_id": "prod-1", "sku": "SKU-001", "quantity_ordered": 2},
        {"order_item_id": "oi-2", "product_id": "prod-2", "sku": "SKU-002", "quantity_ordered": 1},
    ]


def _make_fulfillment(**kwargs):
    return Fulfillment.create(
        order_id="ord-001",
        source_id="wh-001",
        items_data=_make_items(),
        **kwargs,
    )


def _advance_to_ready_to_ship(ff):
    ff.assign()
    ff.start_picking()
    ff.complete_picking()
    ff.start_packing()
    ff.complete_packing(weight=2.5, package_count=1)
    ff.mark_ready_to_ship()
    return ff


def _advance_to_shipped(ff):
    _advance_to_ready_to_ship(ff)
    ff.ship("TRK-001", tracking_url="https://track.example.com/TRK-001", carrier_name="UPS")
    return ff


class TestFulfillmentCreation:
    def test_create_starts_pending(self):
        ff = _make_fulfillment()
        assert ff.status == FulfillmentStatus.PENDING.value
        assert ff.revision == 0
        assert ff.created_at is not None
        assert ff.source_type == "warehouse"

    def test_create_adds_items(self):
        ff = _make_fulfillment()
        assert len(ff.items) == 2
        assert {item.sku for item in ff.items} == {"SKU-001", "SKU-002"}
        assert all(item.quantity_picked == 0 for item in ff.items)

    def test_create_raises_created_event(self):
        ff = _make_fulfillment()
        assert len(ff._events) == 1
        event = ff._events[0]
        assert isinstance(event, FulfillmentCreated)
        assert event.item_count == 2
        assert event.order_id == "ord-001"

    def test_create_with_addresses(self):
        ff = _make_fulfillment(
            ship_to={
                "first_name": "Ada",
                "address_line1": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "postal_code": "62701",
                "country_code": "US",
            },
        )
        assert ff.ship_to.city == "Springfield"
        assert ff.ship_from is None

    def test_create_with_optional_attributes(self):
        ff = _make_fulfillment(source_type="dropship", supplier_id="sup-9", notes="Fragile")
        assert ff.source_type == "dropship"
        assert ff.supplier_id == "sup-9"
        assert ff.notes == "Fragile"

    def test_create_rejects_unknown_source_type(self):
        with pytest.raises(ValidationError):
            _make_fulfillment(source_type="teleporter")

    def test_create_stores_serial_numbers_as_json(self):
        ff = Fulfillment.create(
            order_id="ord-002",
            source_id="wh-001",
            items_data=[
                {
                    "order_item_id": "oi-1",
                    "product_id": "prod-1",
                    "sku": "SKU-001",
                    "quantity_ordered": 1,
                    "serial_numbers": ["SN-1"],
                }
            ],
        )
        assert json.loads(ff.items[0].serial_numbers) == ["SN-1"]


class TestWarehouseWorkflow:
    def test_each_step_stamps_its_timestamp(self):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        assert ff.status == FulfillmentStatus.READY_TO_SHIP.value
        for stamp in ("assigned_at", "picking_started_at", "picked_at", "packing_started_at", "packed_at"):
            assert getattr(ff, stamp) is not None

    def test_each_step_bumps_revision(self):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        assert ff.revision == 6

    def test_complete_packing_records_package_details(self):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        assert ff.weight == 2.5
        assert ff.package_count == 1

    def test_assign_can_reroute_source(self):
        ff = _make_fulfillment()
        ff.assign(source_type="store", source_id="store-7")
        assert ff.source_type == "store"
        assert ff.source_id == "store-7"

    def test_skipping_a_step_is_rejected(self):
        ff = _make_fulfillment()
        with pytest.raises(InvalidTransitionError) as exc:
            ff.start_picking()
        assert exc.value.current == "pending"
        assert exc.value.target == "picking"
        assert ff.status == FulfillmentStatus.PENDING.value

    def test_invalid_transition_is_a_validation_error(self):
        ff = _make_fulfillment()
        with pytest.raises(ValidationError) as exc:
            ff.mark_delivered()
        assert "status" in exc.value.messages


class TestShipping:
    def test_ship_records_tracking_and_carrier(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert ff.status == FulfillmentStatus.SHIPPED.value
        assert ff.tracking_number == "TRK-001"
        assert ff.tracking_url == "https://track.example.com/TRK-001"
        assert ff.carrier_name == "UPS"
        assert ff.shipped_at is not None

    def test_ship_records_fulfilled_quantities(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert {item.sku: item.quantity_fulfilled for item in ff.items} == {"SKU-001": 2, "SKU-002": 1}

    def test_ship_raises_shipped_event(self):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        ff._events.clear()
        ff.ship("TRK-001")
        assert len(ff._events) == 1
        event = ff._events[0]
        assert isinstance(event, FulfillmentShipped)
        assert event.tracking_number == "TRK-001"
        assert len(json.loads(event.shipped_items)) == 2

    @pytest.mark.parametrize("tracking_number", [None, "", "   "])
    def test_ship_without_tracking_number_fails(self, tracking_number):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        with pytest.raises(MissingTrackingNumberError):
            ff.ship(tracking_number)
        assert ff.status == FulfillmentStatus.READY_TO_SHIP.value
        assert ff.shipped_at is None

    def test_ship_before_ready_is_an_invalid_transition(self):
        ff = _make_fulfillment()
        with pytest.raises(InvalidTransitionError):
            ff.ship("TRK-001")

    def test_update_tracking_while_in_transit(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_in_transit(location="Memphis, TN")
        ff.update_tracking("TRK-002", "https://track.example.com/TRK-002")
        assert ff.tracking_number == "TRK-002"
        assert ff.status == FulfillmentStatus.IN_TRANSIT.value
        assert ff.last_known_location == "Memphis, TN"

    def test_tracking_history_keeps_every_checkpoint(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_in_transit(location="Memphis, TN")
        ff.mark_out_for_delivery(location="Local depot")
        ff.mark_delivered(location="Front porch")

        history = [(e.status, e.location) for e in ff.tracking_events]
        assert history == [
            ("in_transit", "Memphis, TN"),
            ("out_for_delivery", "Local depot"),
            ("delivered", "Front porch"),
        ]
        assert all(e.occurred_at is not None for e in ff.tracking_events)
        assert ff.last_known_location == "Front porch"

    def test_no_tracking_events_before_shipping(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert not ff.tracking_events

    def test_update_tracking_before_shipping_fails(self):
        ff = _make_fulfillment()
        with pytest.raises(ValidationError):
            ff.update_tracking("TRK-002")


class TestDelivery:
    def test_deliver_sets_delivered_at(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_in_transit()
        ff.mark_out_for_delivery(location="Local depot")
        ff.mark_delivered()
        assert ff.status == FulfillmentStatus.DELIVERED.value
        assert ff.delivered_at is not None
        assert any(isinstance(e, FulfillmentDelivered) for e in ff._events)

    def test_delivered_at_unset_before_delivery(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert ff.delivered_at is None

    def test_return_after_delivery(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_delivered()
        ff.mark_returned(reason="Wrong size")
        assert ff.status == FulfillmentStatus.RETURNED.value
        assert ff.returned_at is not None
        assert ff.return_reason == "Wrong size"

    def test_is_complete(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert not ff.is_complete()
        ff.mark_delivered()
        assert ff.is_complete()


class TestExceptionalOutcomes:
    def test_fail_records_reason(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff._events.clear()
        ff.mark_failed(reason="Address not found")
        assert ff.status == FulfillmentStatus.FAILED.value
        assert ff.failure_reason == "Address not found"
        assert ff.failed_at is not None
        event = ff._events[0]
        assert isinstance(event, FulfillmentFailed)
        assert event.previous_status == "shipped"

    def test_fail_adds_tracking_event(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_failed(reason="Address not found", location="Oakland, CA")
        last = ff.tracking_events[-1]
        assert last.status == "failed"
        assert last.location == "Oakland, CA"
        assert last.description == "Address not found"

    def test_cancel_pending(self):
        ff = _make_fulfillment()
        ff._events.clear()
        ff.cancel(reason="Customer request")
        assert ff.status == FulfillmentStatus.CANCELLED.value
        assert ff.cancellation_reason == "Customer request"
        assert isinstance(ff._events[0], FulfillmentCancelled)

    def test_cannot_cancel_delivered(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_delivered()
        with pytest.raises(InvalidTransitionError) as exc:
            ff.cancel("Too late")
        assert "Cannot cancel a delivered fulfillment" in exc.value.messages["status"]
        assert ff.status == FulfillmentStatus.DELIVERED.value

    def test_cannot_cancel_after_shipping(self):
        ff = _advance_to_shipped(_make_fulfillment())
        assert not ff.can_cancel()
        with pytest.raises(InvalidTransitionError):
            ff.cancel()

    def test_can_cancel_before_shipping(self):
        ff = _advance_to_ready_to_ship(_make_fulfillment())
        assert ff.can_cancel()

    def test_failed_is_terminal(self):
        ff = _advance_to_shipped(_make_fulfillment())
        ff.mark_failed()
        with pytest.raises(InvalidTransitionError):
            ff.mark_delivered()
