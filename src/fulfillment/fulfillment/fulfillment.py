"""Fulfillment aggregate (CQRS): one shipment unit for one order.

The aggregate is the only place a fulfillment's status changes. Every
status-changing method goes through ``_transition``, which validates the
move against the lifecycle table, stamps the matching workflow timestamp,
records ``updated_at`` and bumps the ``revision`` used for optimistic
concurrency checks.

Items are picked and packed individually during the PICKING and PACKING
phases, possibly in several partial steps.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from fulfillment.domain import fulfillment
from fulfillment.fulfillment.errors import InvalidTransitionError, MissingTrackingNumberError
from fulfillment.fulfillment.events import (
    FulfillmentCancelled,
    FulfillmentCreated,
    FulfillmentDelivered,
    FulfillmentFailed,
    FulfillmentShipped,
)
from fulfillment.fulfillment.lifecycle import (
    COMPLETE_STATUSES,
    FulfillmentStatus,
    can_transition,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SourceType(Enum):
    WAREHOUSE = "warehouse"
    MERCHANT = "merchant"
    SUPPLIER = "supplier"
    DROPSHIP = "dropship"
    STORE = "store"


_TIMESTAMP_FIELDS = {
    FulfillmentStatus.ASSIGNED: "assigned_at",
    FulfillmentStatus.PICKING: "picking_started_at",
    FulfillmentStatus.PICKED: "picked_at",
    FulfillmentStatus.PACKING: "packing_started_at",
    FulfillmentStatus.PACKED: "packed_at",
    FulfillmentStatus.SHIPPED: "shipped_at",
    FulfillmentStatus.DELIVERED: "delivered_at",
    FulfillmentStatus.FAILED: "failed_at",
    FulfillmentStatus.CANCELLED: "cancelled_at",
    FulfillmentStatus.RETURNED: "returned_at",
}

_TRACKABLE_STATUSES = {
    FulfillmentStatus.SHIPPED,
    FulfillmentStatus.IN_TRANSIT,
    FulfillmentStatus.OUT_FOR_DELIVERY,
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@fulfillment.value_object(part_of="Fulfillment")
class Address:
    """A postal address a shipment leaves from or travels to."""

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    company = String(max_length=255)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country_code = String(required=True, max_length=3)
    phone = String(max_length=50)
    email = String(max_length=254)


@fulfillment.value_object(part_of="Fulfillment")
class PackageDimensions:
    """Outer dimensions of the packed shipment, in centimetres."""

    length = Float(min_value=0.0)
    width = Float(min_value=0.0)
    height = Float(min_value=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@fulfillment.entity(part_of="Fulfillment")
class FulfillmentItem:
    """One order line within a fulfillment."""

    order_item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    sku = String(required=True, max_length=100)
    name = String(max_length=255)
    quantity_ordered = Integer(required=True, min_value=1)
    quantity_fulfilled = Integer(default=0, min_value=0)
    quantity_picked = Integer(default=0, min_value=0)
    quantity_packed = Integer(default=0, min_value=0)
    warehouse_location = String(max_length=100)
    bin_location = String(max_length=100)
    serial_numbers = Text()  # JSON list of serial number strings
    lot_number = String(max_length=100)
    is_picked = Boolean(default=False)
    is_packed = Boolean(default=False)
    picked_at = DateTime()
    packed_at = DateTime()

    @invariant.post
    def picked_quantity_cannot_exceed_ordered(self):
        if (self.quantity_picked or 0) > self.quantity_ordered:
            raise ValidationError({"quantity_picked": ["Picked quantity cannot exceed ordered quantity"]})

    @invariant.post
    def packed_quantity_cannot_exceed_available(self):
        if (self.quantity_packed or 0) > self.packable_quantity:
            raise ValidationError({"quantity_packed": ["Packed quantity cannot exceed picked quantity"]})

    @property
    def packable_quantity(self) -> int:
        """Picked quantity, or the ordered quantity when picking was skipped."""
        return self.quantity_picked if self.quantity_picked else self.quantity_ordered


@fulfillment.entity(part_of="Fulfillment")
class TrackingEvent:
    """A carrier checkpoint recorded while the shipment is underway."""

    status = String(required=True, max_length=50)
    location = String(max_length=200)
    description = String(max_length=500)
    occurred_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@fulfillment.aggregate
class Fulfillment:
    order_id = Identifier(required=True)
    order_number = String(max_length=100)

    # Who fulfils the shipment
    source_type = String(required=True, choices=SourceType, default=SourceType.WAREHOUSE.value)
    source_id = Identifier(required=True)
    merchant_id = Identifier()
    supplier_id = Identifier()
    store_id = Identifier()
    channel_id = Identifier()

    status = String(
        choices=FulfillmentStatus,
        default=FulfillmentStatus.PENDING.value,
    )
    revision = Integer(default=0)

    # Shipping
    carrier_id = String(max_length=100)
    carrier_name = String(max_length=100)
    shipping_method_id = String(max_length=100)
    shipping_method_name = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=500)
    last_known_location = String(max_length=200)

    ship_from = ValueObject(Address)
    ship_to = ValueObject(Address)

    # Package (weight in kilograms)
    weight = Float(min_value=0.0)
    dimensions = ValueObject(PackageDimensions)
    package_count = Integer(min_value=0)

    shipping_cost = Float(min_value=0.0)
    insurance_cost = Float(min_value=0.0)
    currency = String(max_length=3, default="USD")

    notes = Text()
    internal_notes = Text()

    items = HasMany(FulfillmentItem)
    tracking_events = HasMany(TrackingEvent)

    # Workflow timestamps
    assigned_at = DateTime()
    picking_started_at = DateTime()
    picked_at = DateTime()
    packing_started_at = DateTime()
    packed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    failed_at = DateTime()
    cancelled_at = DateTime()
    returned_at = DateTime()

    failure_reason = String(max_length=500)
    cancellation_reason = String(max_length=500)
    return_reason = String(max_length=500)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id: str,
        source_id: str,
        items_data: list[dict],
        source_type: str = SourceType.WAREHOUSE.value,
        ship_from: dict | None = None,
        ship_to: dict | None = None,
        **attributes,
    ):
        """Create a new pending fulfillment for an order.

        ``attributes`` may carry any optional descriptive field (order number,
        merchant/supplier/store/channel ids, chosen method and carrier,
        costs, notes).
        """
        now = datetime.now(UTC)
        ff = cls(
            order_id=order_id,
            source_type=source_type,
            source_id=source_id,
            ship_from=Address(**ship_from) if ship_from else None,
            ship_to=Address(**ship_to) if ship_to else None,
            status=FulfillmentStatus.PENDING.value,
            revision=0,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        for item_data in items_data:
            data = dict(item_data)
            if isinstance(data.get("serial_numbers"), list):
                data["serial_numbers"] = json.dumps(data["serial_numbers"])
            ff.add_items(FulfillmentItem(**data))
        ff.raise_(
            FulfillmentCreated(
                fulfillment_id=str(ff.id),
                order_id=order_id,
                source_type=source_type,
                source_id=source_id,
                item_count=len(items_data),
                created_at=now,
            )
        )
        return ff

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _transition(self, target: FulfillmentStatus) -> datetime:
        current = FulfillmentStatus(self.status)
        if not can_transition(current, target):
            raise InvalidTransitionError(current.value, target.value)

        now = datetime.now(UTC)
        stamp = _TIMESTAMP_FIELDS.get(target)
        if stamp:
            setattr(self, stamp, now)
        self.status = target.value
        self.updated_at = now
        self.revision = (self.revision or 0) + 1
        return now

    def _find_item(self, item_id: str) -> FulfillmentItem:
        item = next((i for i in (self.items or []) if str(i.id) == item_id), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in this fulfillment"]})
        return item

    # -------------------------------------------------------------------
    # Warehouse workflow
    # -------------------------------------------------------------------
    def assign(self, source_type: str | None = None, source_id: str | None = None) -> None:
        """Assign the fulfillment to its source, optionally re-routing it."""
        self._transition(FulfillmentStatus.ASSIGNED)
        if source_type:
            self.source_type = source_type
        if source_id:
            self.source_id = source_id

    def start_picking(self) -> None:
        self._transition(FulfillmentStatus.PICKING)

    def complete_picking(self) -> None:
        self._transition(FulfillmentStatus.PICKED)

    def start_packing(self) -> None:
        self._transition(FulfillmentStatus.PACKING)

    def complete_packing(
        self,
        weight: float | None = None,
        package_count: int | None = None,
        dimensions: dict | None = None,
    ) -> None:
        """Close packing and record the package details, when given."""
        self._transition(FulfillmentStatus.PACKED)
        if weight is not None:
            self.weight = weight
        if package_count is not None:
            self.package_count = package_count
        if dimensions:
            self.dimensions = PackageDimensions(**dimensions)

    def mark_ready_to_ship(self) -> None:
        self._transition(FulfillmentStatus.READY_TO_SHIP)

    # -------------------------------------------------------------------
    # Item picking and packing
    # -------------------------------------------------------------------
    def record_item_picked(
        self,
        item_id: str,
        quantity: int | None = None,
        warehouse_location: str | None = None,
        bin_location: str | None = None,
        serial_numbers: list[str] | None = None,
        lot_number: str | None = None,
    ) -> None:
        """Record that some or all units of an item were picked.

        ``quantity`` defaults to the units still outstanding.
        """
        if FulfillmentStatus(self.status) != FulfillmentStatus.PICKING:
            raise ValidationError({"status": ["Items can only be picked during the picking phase"]})

        item = self._find_item(item_id)
        already_picked = item.quantity_picked or 0
        if quantity is None:
            quantity = item.quantity_ordered - already_picked
        if quantity < 1:
            raise ValidationError({"quantity": ["Nothing left to pick for this item"]})
        if already_picked + quantity > item.quantity_ordered:
            raise ValidationError(
                {"quantity": [f"Cannot pick {already_picked + quantity} of {item.quantity_ordered} ordered units"]}
            )

        now = datetime.now(UTC)
        item.quantity_picked = already_picked + quantity
        item.is_picked = item.quantity_picked == item.quantity_ordered
        item.picked_at = now
        if warehouse_location:
            item.warehouse_location = warehouse_location
        if bin_location:
            item.bin_location = bin_location
        if serial_numbers:
            existing = json.loads(item.serial_numbers) if item.serial_numbers else []
            item.serial_numbers = json.dumps(existing + list(serial_numbers))
        if lot_number:
            item.lot_number = lot_number
        self.updated_at = now
        self.revision = (self.revision or 0) + 1

    def record_item_packed(self, item_id: str, quantity: int | None = None) -> None:
        """Record that some or all units of an item were packed.

        An item can be packed up to its picked quantity, or up to its ordered
        quantity when picking was skipped for it.
        """
        if FulfillmentStatus(self.status) != FulfillmentStatus.PACKING:
            raise ValidationError({"status": ["Items can only be packed during the packing phase"]})

        item = self._find_item(item_id)
        already_packed = item.quantity_packed or 0
        limit = item.packable_quantity
        if quantity is None:
            quantity = limit - already_packed
        if quantity < 1:
            raise ValidationError({"quantity": ["Nothing left to pack for this item"]})
        if already_packed + quantity > limit:
            raise ValidationError({"quantity": [f"Cannot pack {already_packed + quantity} of {limit} available units"]})

        now = datetime.now(UTC)
        item.quantity_packed = already_packed + quantity
        item.is_packed = item.quantity_packed == limit
        item.packed_at = now
        self.updated_at = now
        self.revision = (self.revision or 0) + 1

    # -------------------------------------------------------------------
    # Shipping and tracking
    # -------------------------------------------------------------------
    def ship(
        self,
        tracking_number: str | None,
        tracking_url: str | None = None,
        carrier_id: str | None = None,
        carrier_name: str | None = None,
    ) -> None:
        """Hand the shipment to the carrier. A tracking number is mandatory."""
        current = FulfillmentStatus(self.status)
        if not can_transition(current, FulfillmentStatus.SHIPPED):
            raise InvalidTransitionError(current.value, FulfillmentStatus.SHIPPED.value)
        if not tracking_number or not tracking_number.strip():
            raise MissingTrackingNumberError()

        now = self._transition(FulfillmentStatus.SHIPPED)
        self.tracking_number = tracking_number.strip()
        if tracking_url:
            self.tracking_url = tracking_url
        if carrier_id:
            self.carrier_id = carrier_id
        if carrier_name:
            self.carrier_name = carrier_name

        shipped_items = []
        for item in self.items or []:
            item.quantity_fulfilled = item.quantity_packed or item.quantity_picked or item.quantity_ordered
            shipped_items.append({"order_item_id": str(item.order_item_id), "quantity": item.quantity_fulfilled})

        self.raise_(
            FulfillmentShipped(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=self.tracking_number,
                tracking_url=self.tracking_url,
                carrier_id=self.carrier_id,
                carrier_name=self.carrier_name,
                weight=self.weight,
                package_count=self.package_count,
                shipped_items=json.dumps(shipped_items),
                shipped_at=now,
            )
        )

    def update_tracking(self, tracking_number: str | None, tracking_url: str | None = None) -> None:
        """Correct the carrier tracking details while the parcel is underway."""
        if FulfillmentStatus(self.status) not in _TRACKABLE_STATUSES:
            raise ValidationError({"status": ["Tracking can only be updated while the shipment is underway"]})
        if not tracking_number or not tracking_number.strip():
            raise MissingTrackingNumberError()

        self.tracking_number = tracking_number.strip()
        self.tracking_url = tracking_url
        self.updated_at = datetime.now(UTC)

    def _record_tracking_event(
        self,
        status: FulfillmentStatus,
        occurred_at: datetime,
        location: str | None = None,
        description: str | None = None,
    ) -> None:
        self.add_tracking_events(
            TrackingEvent(
                status=status.value,
                location=location or "",
                description=description or "",
                occurred_at=occurred_at,
            )
        )
        if location:
            self.last_known_location = location

    def mark_in_transit(self, location: str | None = None) -> None:
        now = self._transition(FulfillmentStatus.IN_TRANSIT)
        self._record_tracking_event(FulfillmentStatus.IN_TRANSIT, now, location, "In transit")

    def mark_out_for_delivery(self, location: str | None = None) -> None:
        now = self._transition(FulfillmentStatus.OUT_FOR_DELIVERY)
        self._record_tracking_event(FulfillmentStatus.OUT_FOR_DELIVERY, now, location, "Out for delivery")

    def mark_delivered(self, location: str | None = None) -> None:
        now = self._transition(FulfillmentStatus.DELIVERED)
        self._record_tracking_event(FulfillmentStatus.DELIVERED, now, location, "Delivered")
        self.raise_(
            FulfillmentDelivered(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=self.tracking_number,
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Exceptional outcomes
    # -------------------------------------------------------------------
    def mark_failed(self, reason: str | None = None, location: str | None = None) -> None:
        previous = self.status
        now = self._transition(FulfillmentStatus.FAILED)
        self.failure_reason = reason
        self._record_tracking_event(FulfillmentStatus.FAILED, now, location, reason or "Failed")
        self.raise_(
            FulfillmentFailed(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                previous_status=previous,
                reason=reason,
                failed_at=now,
            )
        )

    def cancel(self, reason: str | None = None) -> None:
        """Cancel the fulfillment. A delivered fulfillment can never be cancelled."""
        previous = self.status
        if FulfillmentStatus(previous) == FulfillmentStatus.DELIVERED:
            raise InvalidTransitionError(
                previous,
                FulfillmentStatus.CANCELLED.value,
                reason="Cannot cancel a delivered fulfillment",
            )

        now = self._transition(FulfillmentStatus.CANCELLED)
        self.cancellation_reason = reason
        self.raise_(
            FulfillmentCancelled(
                fulfillment_id=str(self.id),
                order_id=str(self.order_id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    def mark_returned(self, reason: str | None = None) -> None:
        self._transition(FulfillmentStatus.RETURNED)
        self.return_reason = reason

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def can_cancel(self) -> bool:
        return can_transition(FulfillmentStatus(self.status), FulfillmentStatus.CANCELLED)

    def is_complete(self) -> bool:
        return FulfillmentStatus(self.status) in COMPLETE_STATUSES
