"""Discount aggregate: a redeemable code worth a flat amount or a percentage."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String

from checkout.discount.events import DiscountCreated, DiscountDeactivated
from checkout.domain import checkout
from checkout.pricing.engine import DiscountTerms, DiscountType


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


def _aware(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@checkout.aggregate
class Discount:
    code = String(required=True, max_length=50, unique=True)
    description = String(max_length=255)
    discount_type = String(choices=DiscountType, required=True)
    value = Float(required=True)
    min_subtotal = Float(default=0.0, min_value=0.0)
    max_discount = Float(min_value=0.0)
    starts_at = DateTime()
    ends_at = DateTime()
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def value_must_be_positive(self):
        if self.value is None or self.value <= 0:
            raise ValidationError({"value": ["Discount value must be greater than zero"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.starts_at and self.ends_at and _aware(self.ends_at) <= _aware(self.starts_at):
            raise ValidationError({"ends_at": ["Discount must end after it starts"]})

    @classmethod
    def create(cls, code, discount_type, value, **kwargs):
        discount = cls(
            code=normalize_code(code),
            discount_type=discount_type,
            value=value,
            created_at=datetime.now(UTC),
            **kwargs,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                code=discount.code,
                discount_type=discount.discount_type,
                value=discount.value,
            )
        )
        return discount

    def is_live(self, at=None) -> bool:
        """Active and inside its optional start/end window."""
        if not self.is_active:
            return False
        now = _aware(at) or datetime.now(UTC)
        if self.starts_at and now < _aware(self.starts_at):
            return False
        if self.ends_at and now > _aware(self.ends_at):
            return False
        return True

    def terms(self) -> DiscountTerms:
        return DiscountTerms(
            code=self.code,
            discount_type=self.discount_type,
            value=self.value,
            min_subtotal=self.min_subtotal or 0.0,
            max_discount=self.max_discount,
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"code": [f"Discount {self.code} is already inactive"]})
        self.is_active = False
        self.raise_(DiscountDeactivated(discount_id=str(self.id), code=self.code))
