"""Domain events for the CheckoutDraft aggregate."""

from protean.fields import Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="CheckoutDraft")
class CheckoutStarted:
    """A customer began checkout with a selection of items."""

    __version__ = 1

    draft_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    currency = String(required=True)


@checkout.event(part_of="CheckoutDraft")
class DraftItemsReplaced:
    __version__ = 1

    draft_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    step = String(required=True)


@checkout.event(part_of="CheckoutDraft")
class ShippingAddressSet:
    __version__ = 1

    draft_id = Identifier(required=True)
    postal_code = String(required=True)
    shipping_fee = Float(required=True)


@checkout.event(part_of="CheckoutDraft")
class PaymentMethodSet:
    __version__ = 1

    draft_id = Identifier(required=True)
    payment_method = String(required=True)
    total = Float(required=True)


@checkout.event(part_of="CheckoutDraft")
class DraftDiscountChanged:
    """A discount code was applied to or removed from the draft."""

    __version__ = 1

    draft_id = Identifier(required=True)
    discount_code = String()
    discount_amount = Float(required=True)
    total = Float(required=True)


@checkout.event(part_of="CheckoutDraft")
class CheckoutCompleted:
    __version__ = 1

    draft_id = Identifier(required=True)
    order_id = Identifier(required=True)


@checkout.event(part_of="CheckoutDraft")
class CheckoutAbandoned:
    __version__ = 1

    draft_id = Identifier(required=True)
    customer_id = Identifier(required=True)
