"""Totals value object stored on drafts and orders."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, Integer, String

from checkout.domain import checkout
from checkout.pricing.engine import Totals


@checkout.value_object
class CheckoutTotals:
    subtotal: Float(default=0.0, min_value=0.0)
    shipping_fee: Float(default=0.0, min_value=0.0)
    payment_fee: Float(default=0.0, min_value=0.0)
    discount_amount: Float(default=0.0, min_value=0.0)
    discount_code: String(max_length=50)
    total: Float(default=0.0, min_value=0.0)
    currency: String(max_length=3, default="INR")
    item_count: Integer(default=0, min_value=0)

    @invariant.post
    def total_is_sum_of_parts_floored_at_zero(self):
        expected = max(
            (self.subtotal or 0.0) + (self.shipping_fee or 0.0) + (self.payment_fee or 0.0) - (self.discount_amount or 0.0),
            0.0,
        )
        if abs((self.total or 0.0) - expected) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not match its breakdown ({expected:.2f})"]})

    @classmethod
    def from_totals(cls, totals: Totals) -> "CheckoutTotals":
        return cls(**totals.to_dict())

    def as_totals(self) -> Totals:
        return Totals(
            subtotal=self.subtotal,
            shipping_fee=self.shipping_fee,
            payment_fee=self.payment_fee,
            discount_amount=self.discount_amount,
            discount_code=self.discount_code,
            total=self.total,
            currency=self.currency,
            item_count=self.item_count,
        )
