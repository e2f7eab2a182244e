"""Domain events for the PaymentIntent aggregate."""

from protean.fields import Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="PaymentIntent")
class GatewayOrderIssued:
    """The gateway issued a payment order for a receipt (first attempt or a retry after expiry/failure)."""

    __version__ = 1

    intent_id = Identifier(required=True)
    receipt = String(required=True)
    gateway_order_id = String(required=True)
    amount = Integer(required=True)
    currency = String(required=True)
    attempt = Integer(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentAttemptFailed:
    __version__ = 1

    intent_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    reason = String(required=True)


@checkout.event(part_of="PaymentIntent")
class PaymentIntentConsumed:
    """A verified payment on this intent became an order."""

    __version__ = 1

    intent_id = Identifier(required=True)
    gateway_order_id = String(required=True)
    order_id = Identifier(required=True)
