"""Discount lookups used by the draft and by the storefront's "apply code" box."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from checkout.discount.discount import Discount
from checkout.errors import CheckoutValidationError
from checkout.pricing.engine import DiscountTerms, discount_amount_for


@dataclass(frozen=True)
class DiscountCheck:
    code: str
    eligible: bool
    amount: float
    message: str | None = None


def live_discount_terms(code) -> DiscountTerms:
    """Terms of a live discount code.

    Raises ``ObjectNotFoundError`` for unknown codes and a validation error
    for codes that are switched off or outside their window.
    """
    discount = current_domain.repository_for(Discount).get_by_code(code)
    if not discount.is_live():
        raise CheckoutValidationError({"discount_code": ["This discount code is not active."]})
    return discount.terms()


def verify_discount(code, subtotal: float) -> DiscountCheck:
    """Tell the shopper what ``code`` is worth against ``subtotal``, and why not if nothing."""
    terms = live_discount_terms(code)

    if terms.min_subtotal and subtotal < terms.min_subtotal:
        return DiscountCheck(
            code=terms.code,
            eligible=False,
            amount=0.0,
            message=f"Order subtotal must be at least {terms.min_subtotal:.2f} to use this code.",
        )

    return DiscountCheck(code=terms.code, eligible=True, amount=discount_amount_for(subtotal, terms))
