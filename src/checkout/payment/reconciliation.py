"""Gateway payment round-trip: commands and handler.

1. ``CreatePaymentIntent``: the server asks the gateway for a payment order.
2. The client pays in the gateway's hosted UI.
3. ``ConfirmGatewayPayment``: the server checks the signature the client
   brings back and only then materializes the order, once per gateway order.
   ``RecordPaymentFailure`` covers dismissal and declines; no order, draft kept.
"""

import json
import os

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.errors import PaymentVerificationFailed
from checkout.order.order import Order
from checkout.order.placement import already_placed, materialize_order, snapshot_for
from checkout.payment.gateway import get_gateway
from checkout.payment.intent import PaymentIntent, to_minor_units
from checkout.pricing.policy import GATEWAY_NAME, ONLINE_METHODS, PaymentMethod
from checkout.shared.locks import keyed_locks

logger = structlog.get_logger(__name__)


def auto_capture() -> bool:
    """Verified payments land in PAID unless capture is confirmed manually by staff."""
    return os.getenv("PAYMENT_CAPTURE_POLICY", "auto").strip().lower() != "manual"


@checkout.command(part_of="PaymentIntent")
class CreatePaymentIntent:
    receipt = String(required=True, max_length=255)
    amount = Float(required=True, min_value=0.01)
    currency = String(max_length=3, default="INR")
    customer_id = Identifier()
    notes = Text()  # JSON object


@checkout.command(part_of="PaymentIntent")
class RecordPaymentFailure:
    gateway_order_id = String(required=True, max_length=255)
    reason = String(max_length=500)


@checkout.command(part_of="PaymentIntent")
class ConfirmGatewayPayment:
    gateway_order_id = String(required=True, max_length=255)
    gateway_payment_id = String(required=True, max_length=255)
    gateway_signature = String(required=True, max_length=255)
    customer_id = Identifier()
    draft_id = Identifier()
    items = Text()
    shipping_address = Text()
    payment_method = String(max_length=20, default=PaymentMethod.UPI.value)
    discount_code = String(max_length=50)
    submitted_total = Float()


@checkout.command_handler(part_of=PaymentIntent)
class PaymentReconciliationHandler:
    @handle(CreatePaymentIntent)
    def create_intent(self, command):
        repo = current_domain.repository_for(PaymentIntent)
        currency = (command.currency or "INR").upper()
        notes = json.loads(command.notes) if command.notes else {}

        intent = repo.find_by_receipt(command.receipt)
        if intent is not None and intent.can_reuse(command.amount, currency):
            logger.info("payment_intent_reused", receipt=command.receipt, gateway_order_id=intent.gateway_order_id)
            return str(intent.id)

        if intent is None:
            intent = PaymentIntent.open(
                receipt=command.receipt,
                amount=command.amount,
                currency=currency,
                customer_id=command.customer_id,
                notes=notes,
            )

        gateway = get_gateway()
        gateway_order = gateway.create_order(
            amount=to_minor_units(command.amount),
            currency=currency,
            receipt=command.receipt,
            notes=notes,
        )
        intent.issue(gateway_order, gateway.name, command.amount, currency, notes=notes)
        repo.add(intent)

        logger.info(
            "payment_intent_issued",
            receipt=command.receipt,
            gateway_order_id=gateway_order.id,
            amount=gateway_order.amount,
            attempt=intent.attempts,
        )
        return str(intent.id)

    @handle(RecordPaymentFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(PaymentIntent)
        intent = repo.get_by_gateway_order_id(command.gateway_order_id)
        if command.gateway_order_id != intent.gateway_order_id:
            # A newer gateway order is current for this receipt; leave it alone.
            logger.info("superseded_payment_failure_ignored", gateway_order_id=command.gateway_order_id)
            return
        intent.record_failure(command.reason)
        repo.add(intent)
        logger.info("payment_failed", gateway_order_id=command.gateway_order_id, reason=intent.failure_reason)

    @handle(ConfirmGatewayPayment)
    def confirm(self, command):
        gateway = get_gateway()
        if not gateway.verify_payment_signature(
            command.gateway_order_id, command.gateway_payment_id, command.gateway_signature
        ):
            logger.warning(
                "payment_signature_mismatch",
                gateway_order_id=command.gateway_order_id,
                gateway_payment_id=command.gateway_payment_id,
            )
            raise PaymentVerificationFailed()

        existing = already_placed(command.gateway_order_id)
        if existing is not None:
            return str(existing.id)

        intent_repo = current_domain.repository_for(PaymentIntent)
        intent = intent_repo.get_by_gateway_order_id(command.gateway_order_id)

        snapshot = snapshot_for(command)
        if snapshot.payment_method not in ONLINE_METHODS:
            raise ValidationError({"payment_method": ["Cash on delivery orders do not go through the gateway."]})
        if intent.amount_minor_for(command.gateway_order_id) != to_minor_units(snapshot.totals.total):
            raise ValidationError({"amount": ["The paid amount does not match the order total."]})

        order = materialize_order(
            snapshot,
            command.gateway_order_id,
            auto_pay=auto_capture(),
            payment_gateway=GATEWAY_NAME,
            payment_id=command.gateway_payment_id,
            gateway_order_id=command.gateway_order_id,
        )
        intent.consume(order.id, command.gateway_order_id)
        intent_repo.add(intent)
        return str(order.id)


def create_payment_intent(**fields) -> PaymentIntent:
    """Issue (or reuse) the gateway order for a receipt; concurrent calls for one receipt are serialized."""
    with keyed_locks.hold(f"intent:{fields['receipt']}"):
        intent_id = current_domain.process(CreatePaymentIntent(**fields), asynchronous=False)
    return current_domain.repository_for(PaymentIntent).get(intent_id)


def confirm_gateway_payment(**fields) -> Order:
    """Verify and materialize at most one order per gateway order id."""
    with keyed_locks.hold(f"order:{fields['gateway_order_id']}"):
        order_id = current_domain.process(ConfirmGatewayPayment(**fields), asynchronous=False)
    return current_domain.repository_for(Order).get(order_id)
