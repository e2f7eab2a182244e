"""Order placement: materializing a checkout into exactly one Order.

Creating the order, taking the ordered lines out of the customer's cart and
closing the checkout draft all happen inside one command handler, so they
commit together in the handler's unit of work or not at all.
"""

import json
from uuid import uuid4

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.cart.cart import ShoppingCart
from checkout.discount.verification import live_discount_terms
from checkout.domain import checkout
from checkout.draft.draft import CheckoutDraft
from checkout.order.order import Order
from checkout.order.payload import snapshot_from_payload
from checkout.pricing.policy import PaymentMethod
from checkout.shared.locks import keyed_locks
from checkout.shared.snapshot import OrderSnapshot

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class PlaceOrder:
    """Place a cash-on-delivery order from a draft or from an explicit payload."""

    idempotency_key = String(required=True, max_length=255)
    customer_id = Identifier()
    draft_id = Identifier()
    items = Text()  # JSON list of {id?, handle, size, quantity}
    shipping_address = Text()  # JSON object
    payment_method = String(max_length=20, default=PaymentMethod.COD.value)
    discount_code = String(max_length=50)
    submitted_total = Float()


def refreshed_discount_terms(draft: CheckoutDraft):
    """Re-read the draft's discount so an expired code cannot ride along into the order."""
    terms = draft.discount_terms()
    return live_discount_terms(terms.code) if terms else None


def snapshot_for(command) -> OrderSnapshot:
    """Snapshot from the draft when one is named, otherwise from the submitted payload."""
    if command.draft_id:
        draft = current_domain.repository_for(CheckoutDraft).get(command.draft_id)
        if command.customer_id and str(draft.customer_id) != str(command.customer_id):
            raise ValidationError({"draft_id": ["This checkout belongs to another customer."]})
        return draft.finalize_for_order_creation(discount_terms=refreshed_discount_terms(draft))

    return snapshot_from_payload(
        customer_id=command.customer_id,
        items=json.loads(command.items) if command.items else [],
        shipping_address=json.loads(command.shipping_address) if command.shipping_address else {},
        payment_method=command.payment_method,
        discount_code=command.discount_code,
        submitted_total=command.submitted_total,
    )


def already_placed(idempotency_key) -> Order | None:
    """The order previously created for ``idempotency_key``, if any."""
    existing = current_domain.repository_for(Order).find_by_idempotency_key(idempotency_key)
    if existing is not None:
        logger.info("order_replayed", order_id=str(existing.id), idempotency_key=idempotency_key)
    return existing


def materialize_order(snapshot: OrderSnapshot, idempotency_key, auto_pay=False, **payment) -> Order:
    """Insert the order and apply its cart and draft side effects.

    Must run inside a command handler (for atomic side effects) and under
    ``keyed_locks.hold(...)`` for the key, after ``already_placed`` came back empty.
    """
    order_repo = current_domain.repository_for(Order)
    order = Order.place(snapshot, idempotency_key, **payment)
    if auto_pay:
        order.transition_to("PAID", changed_by="gateway")
    order_repo.add(order)

    if snapshot.customer_id:
        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = cart_repo.find_for_customer(snapshot.customer_id)
        if cart is not None and cart.clear_ordered_items(order.id, snapshot.line_keys()):
            cart_repo.add(cart)

    draft_repo = current_domain.repository_for(CheckoutDraft)
    draft = None
    if snapshot.draft_id:
        draft = draft_repo.get(snapshot.draft_id)
    elif snapshot.customer_id:
        draft = draft_repo.find_open_for_customer(snapshot.customer_id)
    if draft is not None:
        draft.mark_order_placed(order.id)
        draft_repo.add(draft)

    logger.info(
        "order_created",
        order_id=str(order.id),
        number=order.number,
        status=order.status,
        payment_method=order.payment_method,
        total=order.totals.total,
    )
    return order


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        existing = already_placed(command.idempotency_key)
        if existing is not None:
            return str(existing.id)

        snapshot = snapshot_for(command)
        if snapshot.payment_method != PaymentMethod.COD.value:
            raise ValidationError(
                {"payment_method": ["Online payments are placed by confirming the gateway payment."]}
            )
        return str(materialize_order(snapshot, command.idempotency_key).id)


def cod_idempotency_key(draft_id=None, key=None) -> str:
    if key:
        return key
    if draft_id:
        return f"draft:{draft_id}"
    return f"cod:{uuid4().hex}"


def place_order(**fields) -> str:
    """Process a ``PlaceOrder`` at most once per idempotency key; return the order id."""
    fields["idempotency_key"] = cod_idempotency_key(fields.get("draft_id"), fields.get("idempotency_key"))
    with keyed_locks.hold(f"order:{fields['idempotency_key']}"):
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)
