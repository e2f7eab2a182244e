"""Order aggregate: the durable result of a successful checkout.

Items, totals and the shipping address are snapshots taken when the order
is placed; later catalog or address-book edits never reach them.

State Machine:
    PENDING -> PAID -> FULFILLED
    PENDING | PAID -> CANCELLED
    FULFILLED and CANCELLED are terminal.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from checkout.domain import checkout
from checkout.errors import IllegalTransitionError
from checkout.order.events import OrderPlaced, OrderStatusChanged, OrderTrackingUpdated
from checkout.shared.address import ShippingAddress, digits_only
from checkout.shared.snapshot import OrderSnapshot
from checkout.shared.totals import CheckoutTotals

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.FULFILLED, OrderStatus.CANCELLED},
    OrderStatus.FULFILLED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_TRANSITION_TIMESTAMPS = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.FULFILLED: "fulfilled_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

TRACKING_FIELDS = ("tracking_number", "awb", "courier_name", "tracking_url", "estimated_delivery")


def _base36(number: int) -> str:
    digits = ""
    while number:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


def generate_order_number(now=None) -> str:
    """Human-facing order number: ORD- plus the creation time in milliseconds, base 36."""
    now = now or datetime.now(UTC)
    return f"ORD-{_base36(int(now.timestamp() * 1000))}"


def normalize_order_number(number) -> str:
    return str(number or "").strip().lstrip("#").strip().upper()


@checkout.value_object(part_of="Order")
class Tracking:
    """Courier details staff attach once the parcel ships."""

    tracking_number = String(max_length=100)
    awb = String(max_length=100)
    courier_name = String(max_length=100)
    tracking_url = String(max_length=500)
    estimated_delivery = String(max_length=10)  # ISO date string


@checkout.entity(part_of="Order")
class OrderLine:
    line_id = String(required=True, max_length=255)
    handle = String(required=True, max_length=255)
    variant_id = String(max_length=255)
    sku = String(max_length=100)
    name = String(required=True, max_length=255)
    size = String(max_length=100)
    unit_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    quantity = Integer(required=True, min_value=1)


@checkout.aggregate
class Order:
    number = String(required=True, max_length=50)
    customer_id = Identifier()
    email = String(max_length=255)
    phone = String(max_length=30)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderLine)
    totals = ValueObject(CheckoutTotals)
    shipping_address = ValueObject(ShippingAddress)
    tracking = ValueObject(Tracking)
    payment_method = String(required=True, max_length=20)
    payment_gateway = String(max_length=50)
    payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    idempotency_key = String(required=True, max_length=255, unique=True)
    discount_code = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()
    paid_at = DateTime()
    fulfilled_at = DateTime()
    cancelled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, snapshot: OrderSnapshot, idempotency_key, payment_gateway=None, payment_id=None, gateway_order_id=None):
        """Create a PENDING order from a finalized checkout snapshot."""
        now = datetime.now(UTC)

        lines = []
        seen = set()
        for n, line in enumerate(snapshot.lines, start=1):
            line_id = line.line_id or f"line-{n}"
            if line_id in seen:
                line_id = f"line-{n}"
            seen.add(line_id)
            lines.append(OrderLine(**{**line.to_dict(), "line_id": line_id}))

        order = cls(
            number=generate_order_number(now),
            customer_id=snapshot.customer_id,
            email=snapshot.email,
            phone=snapshot.phone,
            status=OrderStatus.PENDING.value,
            items=lines,
            totals=CheckoutTotals.from_totals(snapshot.totals),
            shipping_address=ShippingAddress(**snapshot.address),
            payment_method=snapshot.payment_method,
            payment_gateway=payment_gateway,
            payment_id=payment_id,
            gateway_order_id=gateway_order_id,
            idempotency_key=idempotency_key,
            discount_code=snapshot.discount_code,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                number=order.number,
                customer_id=str(snapshot.customer_id) if snapshot.customer_id else None,
                payment_method=order.payment_method,
                total=snapshot.totals.total,
                currency=snapshot.totals.currency,
                item_count=snapshot.totals.item_count,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status, expected_status=None):
        current = OrderStatus(self.status)
        if expected_status is not None and OrderStatus(expected_status) != current:
            raise IllegalTransitionError(
                {"status": [f"Order is {current.value}, not {expected_status}. Reload the order and try again."]}
            )
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise IllegalTransitionError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def transition_to(self, target, expected_status=None, changed_by=None):
        """Move to ``target`` if the state machine allows it.

        With ``expected_status`` the move is a compare-and-set: it only
        happens if the order is still in the state the caller last saw.
        """
        try:
            target_status = OrderStatus(str(target).upper())
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status {target}"]}) from None

        if expected_status is not None:
            try:
                expected_status = OrderStatus(str(expected_status).upper()).value
            except ValueError:
                raise ValidationError({"expected_status": [f"Unknown order status {expected_status}"]}) from None

        self._assert_can_transition(target_status, expected_status)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target_status.value
        setattr(self, _TRANSITION_TIMESTAMPS[target_status], now)
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target_status.value,
                changed_by=changed_by,
            )
        )

    def update_tracking(self, **fields):
        """Merge courier details into the tracking record; unspecified fields are kept."""
        if OrderStatus(self.status) == OrderStatus.CANCELLED:
            raise ValidationError({"tracking": ["Tracking cannot be updated on a cancelled order."]})

        current = {name: getattr(self.tracking, name, None) for name in TRACKING_FIELDS} if self.tracking else {}
        updates = {name: value for name, value in fields.items() if name in TRACKING_FIELDS and value is not None}
        if not updates:
            raise ValidationError({"tracking": ["Provide at least one tracking field."]})

        self.tracking = Tracking(**{**current, **updates})
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderTrackingUpdated(
                order_id=str(self.id),
                tracking_number=self.tracking.tracking_number,
                courier_name=self.tracking.courier_name,
                tracking_url=self.tracking.tracking_url,
            )
        )

    def line_ids(self) -> set[str]:
        return {line.line_id for line in self.items}

    def contact_matches(self, email=None, phone=None) -> bool:
        """Whether the given email (case-insensitive) or phone (digits only) belongs to this order."""
        if email and self.email and email.strip().lower() == self.email.strip().lower():
            return True
        if phone and self.phone:
            given = digits_only(phone)
            return bool(given) and given == digits_only(self.phone)
        return False
