"""CheckoutDraft aggregate: one in-progress checkout attempt.

Steps only move forward (ITEMS_SELECTED -> ADDRESS_SET -> PAYMENT_METHOD_SET
-> ORDER_PLACED), except that changing the items in a way that changes the
totals sends the draft back to ITEMS_SELECTED so address and payment are
confirmed again against the new amounts.

Every mutation validates and prices first, then writes; a rejected call
leaves the draft exactly as it was.
"""

import json
from dataclasses import asdict
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from checkout.domain import checkout
from checkout.draft.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutStarted,
    DraftDiscountChanged,
    DraftItemsReplaced,
    PaymentMethodSet,
    ShippingAddressSet,
)
from checkout.errors import EmptySelectionError, InvalidPricingError
from checkout.pricing.engine import DiscountTerms, Totals, compute_totals
from checkout.pricing.policy import PaymentMethod
from checkout.shared.address import ShippingAddress, clean_address
from checkout.shared.snapshot import OrderSnapshot, SnapshotLine, freeze_address
from checkout.shared.totals import CheckoutTotals


class CheckoutStep(Enum):
    ITEMS_SELECTED = "ITEMS_SELECTED"
    ADDRESS_SET = "ADDRESS_SET"
    PAYMENT_METHOD_SET = "PAYMENT_METHOD_SET"
    ORDER_PLACED = "ORDER_PLACED"


class DraftStatus(Enum):
    OPEN = "OPEN"
    PLACED = "PLACED"
    ABANDONED = "ABANDONED"


# Sentinel for "use what the draft already has"
_UNSET = object()

_STEP_ORDER = [
    CheckoutStep.ITEMS_SELECTED,
    CheckoutStep.ADDRESS_SET,
    CheckoutStep.PAYMENT_METHOD_SET,
    CheckoutStep.ORDER_PLACED,
]


def _later_step(current, target):
    return max(CheckoutStep(current), target, key=_STEP_ORDER.index)


def guard_selection(lines) -> None:
    """Checkout-entry guards: something selected, and every line priced above zero."""
    if not lines:
        raise EmptySelectionError()
    if any(line.get("unit_price") is None or float(line["unit_price"]) <= 0 for line in lines):
        raise InvalidPricingError()


@checkout.entity(part_of="CheckoutDraft")
class DraftLine:
    line_id = String(required=True, max_length=255)
    handle = String(required=True, max_length=255)
    variant_id = String(max_length=255)
    sku = String(max_length=100)
    name = String(required=True, max_length=255)
    size = String(max_length=100)
    unit_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    quantity = Integer(required=True, min_value=1)


def _build_lines(lines_data) -> list:
    return [
        DraftLine(
            line_id=str(data.get("line_id") or data.get("sku") or f"line-{n}"),
            handle=data["handle"],
            variant_id=data.get("variant_id"),
            sku=data.get("sku"),
            name=data.get("name") or data["handle"],
            size=data.get("size"),
            unit_price=float(data["unit_price"]),
            currency=(data.get("currency") or "INR").upper(),
            quantity=int(data.get("quantity") or 1),
        )
        for n, data in enumerate(lines_data, start=1)
    ]


@checkout.aggregate
class CheckoutDraft:
    customer_id = Identifier(required=True)
    cart_id = Identifier()
    status = String(choices=DraftStatus, default=DraftStatus.OPEN.value)
    step = String(choices=CheckoutStep, default=CheckoutStep.ITEMS_SELECTED.value)
    items = HasMany(DraftLine)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(choices=PaymentMethod)
    applied_discount = Text()  # JSON of the discount terms at the time they were applied
    totals = ValueObject(CheckoutTotals)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def open_draft_must_have_items(self):
        if self.status == DraftStatus.OPEN.value and not self.items:
            raise ValidationError({"items": ["A checkout must contain at least one item"]})

    @invariant.post
    def payment_method_requires_shipping_address(self):
        if self.payment_method and self.shipping_address is None:
            raise ValidationError({"payment_method": ["Add a shipping address before choosing a payment method."]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def begin(cls, customer_id, lines_data, cart_id=None):
        """Start a checkout from resolved, priced line dicts."""
        guard_selection(lines_data)
        lines = _build_lines(lines_data)
        totals = compute_totals(lines)

        now = datetime.now(UTC)
        draft = cls(
            customer_id=customer_id,
            cart_id=cart_id,
            items=lines,
            totals=CheckoutTotals.from_totals(totals),
            created_at=now,
            updated_at=now,
        )
        draft.raise_(
            CheckoutStarted(
                draft_id=str(draft.id),
                customer_id=str(customer_id),
                item_count=totals.item_count,
                subtotal=totals.subtotal,
                currency=totals.currency,
            )
        )
        return draft

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_open(self):
        if self.status != DraftStatus.OPEN.value:
            raise ValidationError({"status": [f"Checkout is already {self.status.lower()}"]})

    def discount_terms(self) -> DiscountTerms | None:
        return DiscountTerms(**json.loads(self.applied_discount)) if self.applied_discount else None

    def _price(self, lines=None, payment_method=_UNSET, discount=_UNSET) -> Totals:
        return compute_totals(
            self.items if lines is None else lines,
            payment_method=self.payment_method if payment_method is _UNSET else payment_method,
            discount=self.discount_terms() if discount is _UNSET else discount,
        )

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def replace_items(self, lines_data):
        """Swap in a new selection. Totals that move send the draft back to step one."""
        self._assert_open()
        guard_selection(lines_data)
        lines = _build_lines(lines_data)
        totals = self._price(lines=lines)
        totals_changed = totals != self.totals.as_totals()

        with atomic_change(self):
            for line in list(self.items):
                self.remove_items(line)
            for line in lines:
                self.add_items(line)
            self.totals = CheckoutTotals.from_totals(totals)
            if totals_changed:
                self.step = CheckoutStep.ITEMS_SELECTED.value
            self.updated_at = datetime.now(UTC)

        self.raise_(
            DraftItemsReplaced(
                draft_id=str(self.id),
                item_count=totals.item_count,
                subtotal=totals.subtotal,
                step=self.step,
            )
        )

    def set_address(self, address_data):
        self._assert_open()
        cleaned = clean_address(address_data)
        totals = self._price()

        with atomic_change(self):
            self.shipping_address = ShippingAddress(**cleaned)
            self.totals = CheckoutTotals.from_totals(totals)
            self.step = _later_step(self.step, CheckoutStep.ADDRESS_SET).value
            self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingAddressSet(
                draft_id=str(self.id),
                postal_code=cleaned["postal_code"],
                shipping_fee=totals.shipping_fee,
            )
        )

    def set_payment_method(self, method):
        self._assert_open()
        method = str(method or "").strip().upper()
        if method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": [f"Unsupported payment method {method or '(none)'}"]})
        if self.shipping_address is None or CheckoutStep(self.step) == CheckoutStep.ITEMS_SELECTED:
            raise ValidationError({"shipping_address": ["Confirm the shipping address before choosing a payment method."]})

        totals = self._price(payment_method=method)

        with atomic_change(self):
            self.payment_method = method
            self.totals = CheckoutTotals.from_totals(totals)
            self.step = CheckoutStep.PAYMENT_METHOD_SET.value
            self.updated_at = datetime.now(UTC)

        self.raise_(PaymentMethodSet(draft_id=str(self.id), payment_method=method, total=totals.total))

    def apply_discount(self, terms: DiscountTerms | None):
        """Apply (or with ``None`` remove) a discount. An unmet minimum just yields 0 off."""
        self._assert_open()
        totals = self._price(discount=terms)

        self.applied_discount = json.dumps(asdict(terms)) if terms else None
        self.totals = CheckoutTotals.from_totals(totals)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            DraftDiscountChanged(
                draft_id=str(self.id),
                discount_code=terms.code if terms else None,
                discount_amount=totals.discount_amount,
                total=totals.total,
            )
        )

    def finalize_for_order_creation(self, discount_terms=_UNSET) -> OrderSnapshot:
        """Re-check everything and hand back a frozen snapshot for the order.

        ``discount_terms`` lets the caller pass freshly re-read discount terms
        (``None`` when the code is no longer live); the stored terms are
        used otherwise. The draft itself is not modified.
        """
        self._assert_open()
        if CheckoutStep(self.step) != CheckoutStep.PAYMENT_METHOD_SET:
            raise ValidationError({"step": ["Complete the address and payment steps before placing the order."]})

        lines_data = [line.to_dict() for line in self.items]
        guard_selection(lines_data)
        cleaned = clean_address(self.shipping_address.to_dict())
        terms = self.discount_terms() if discount_terms is _UNSET else discount_terms
        totals = self._price(discount=terms)

        return OrderSnapshot(
            customer_id=str(self.customer_id),
            lines=tuple(
                SnapshotLine(
                    line_id=line.line_id,
                    handle=line.handle,
                    variant_id=line.variant_id,
                    sku=line.sku,
                    name=line.name,
                    size=line.size,
                    unit_price=line.unit_price,
                    currency=line.currency,
                    quantity=line.quantity,
                )
                for line in self.items
            ),
            shipping_address=freeze_address(cleaned),
            totals=totals,
            payment_method=self.payment_method,
            discount_code=totals.discount_code,
            draft_id=str(self.id),
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_order_placed(self, order_id):
        self._assert_open()
        self.status = DraftStatus.PLACED.value
        self.step = CheckoutStep.ORDER_PLACED.value
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

        self.raise_(CheckoutCompleted(draft_id=str(self.id), order_id=str(order_id)))

    def abandon(self):
        self._assert_open()
        self.status = DraftStatus.ABANDONED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(CheckoutAbandoned(draft_id=str(self.id), customer_id=str(self.customer_id)))
