"""Error taxonomy for the checkout context.

Every error carries Protean-style messages: a dict of field name to a list
of human-readable strings. User-correctable failures derive from
``ValidationError``; defects and infrastructure failures derive from
``InvalidOperationError``.
"""

from protean.exceptions import InvalidOperationError, ValidationError


class CheckoutValidationError(ValidationError):
    """Malformed or missing checkout input; surfaced to the user verbatim."""


class EmptySelectionError(CheckoutValidationError):
    def __init__(self, messages=None, **kwargs):
        super().__init__(messages or {"items": ["Select at least one item to checkout."]}, **kwargs)


class InvalidPricingError(CheckoutValidationError):
    def __init__(self, messages=None, **kwargs):
        super().__init__(
            messages or {"items": ["Some items have invalid pricing. Please refresh your cart and try again."]},
            **kwargs,
        )


class NoPurchasableVariant(CheckoutValidationError):
    def __init__(self, handle, **kwargs):
        super().__init__({"product": [f"Product {handle} has no purchasable variants."]}, **kwargs)


class CheckoutOperationError(InvalidOperationError):
    """Base for non-user failures; keeps the messages dict for the HTTP layer."""

    def __init__(self, messages, **kwargs):
        self.messages = messages
        super().__init__(messages, **kwargs)


class MixedCurrencyError(CheckoutOperationError):
    """Line items priced in more than one currency reached the pricing engine."""

    def __init__(self, currencies, **kwargs):
        self.currencies = sorted(currencies)
        super().__init__({"currency": [f"Cannot price items in mixed currencies: {', '.join(self.currencies)}"]}, **kwargs)


class IllegalTransitionError(ValidationError):
    """A state machine rejected the requested transition (or a stale expected state)."""


class PaymentVerificationFailed(ValidationError):
    def __init__(self, messages=None, **kwargs):
        super().__init__(messages or {"signature": ["Payment signature verification failed."]}, **kwargs)


class RequestNotEligible(ValidationError):
    """The order's state does not allow this kind of post-purchase request."""


class PaymentGatewayError(CheckoutOperationError):
    """The payment gateway was unreachable or refused the call."""
