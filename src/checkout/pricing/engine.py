"""Totals computation for carts, drafts and orders.

``compute_totals`` is a pure function: the same lines, payment method and
discount always produce the same ``Totals``. The computation order is
fixed (subtotal, shipping, payment fee, discount, total) because the
storefront displays the breakdown in exactly that sequence.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from enum import Enum

from checkout.errors import MixedCurrencyError
from checkout.pricing.policy import PricingPolicy, get_pricing_policy


class DiscountType(Enum):
    FLAT = "FLAT"
    PERCENTAGE = "PERCENTAGE"


@dataclass(frozen=True)
class PricedLine:
    unit_price: float
    quantity: int
    currency: str = "INR"
    selected: bool = True


@dataclass(frozen=True)
class DiscountTerms:
    code: str
    discount_type: str
    value: float
    min_subtotal: float = 0.0
    max_discount: float | None = None


@dataclass(frozen=True)
class Totals:
    subtotal: float = 0.0
    shipping_fee: float = 0.0
    payment_fee: float = 0.0
    discount_amount: float = 0.0
    discount_code: str | None = None
    total: float = 0.0
    currency: str = "INR"
    item_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def round_money(value: float) -> float:
    return round(float(value), 2)


def _selected(lines: Iterable) -> list:
    return [line for line in lines if getattr(line, "selected", True)]


def _single_currency(lines: list, default: str) -> str:
    currencies = {(line.currency or default).upper() for line in lines}
    if len(currencies) > 1:
        raise MixedCurrencyError(currencies)
    return currencies.pop() if currencies else default


def shipping_fee_for(subtotal: float, policy: PricingPolicy) -> float:
    if subtotal >= policy.free_shipping_threshold:
        return 0.0
    return round_money(policy.standard_shipping_fee)


def discount_amount_for(subtotal: float, discount: DiscountTerms | None) -> float:
    """Amount taken off the subtotal, or 0 when the discount does not apply.

    An unmet minimum subtotal is not an error; the discount simply yields 0.
    """
    if discount is None or subtotal <= 0 or discount.value <= 0:
        return 0.0
    if discount.min_subtotal and subtotal < discount.min_subtotal:
        return 0.0

    if discount.discount_type == DiscountType.PERCENTAGE.value:
        amount = subtotal * discount.value / 100
        if discount.max_discount and discount.max_discount > 0:
            amount = min(amount, discount.max_discount)
    else:
        amount = discount.value

    return round_money(min(max(amount, 0.0), subtotal))


def compute_totals(
    lines: Iterable,
    payment_method: str | None = None,
    discount: DiscountTerms | None = None,
    policy: PricingPolicy | None = None,
) -> Totals:
    """Price the selected lines.

    ``lines`` may be any objects exposing ``unit_price``, ``quantity`` and
    ``currency``; an optional ``selected`` attribute excludes deselected
    cart lines. Raises ``MixedCurrencyError`` when selected lines disagree
    on currency.
    """
    policy = policy or get_pricing_policy()
    selected = _selected(lines)
    currency = _single_currency(selected, policy.currency)

    if not selected:
        return Totals(currency=currency)

    subtotal = round_money(sum(float(line.unit_price) * int(line.quantity) for line in selected))
    shipping_fee = shipping_fee_for(subtotal, policy)
    payment_fee = round_money(policy.payment_fee_for(payment_method))
    discount_amount = discount_amount_for(subtotal, discount)
    total = round_money(max(subtotal + shipping_fee + payment_fee - discount_amount, 0.0))

    return Totals(
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        payment_fee=payment_fee,
        discount_amount=discount_amount,
        discount_code=discount.code if discount else None,
        total=total,
        currency=currency,
        item_count=sum(int(line.quantity) for line in selected),
    )


def totals_match(expected: Totals, submitted_total: float, tolerance: float = 0.01) -> bool:
    # Compared in minor units so a one-cent gap is not lost to float error.
    difference = abs(round(float(expected.total) * 100) - round(float(submitted_total) * 100))
    return difference <= round(tolerance * 100)
