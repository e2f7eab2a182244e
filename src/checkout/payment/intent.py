"""PaymentIntent aggregate: this system's record of a gateway payment order.

One intent per receipt. Retries of the same receipt reuse the gateway order
id while it is still valid for the same amount, so a flaky client can never
cause a second authorization against a fresh gateway order.
"""

import json
import os
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from checkout.domain import checkout
from checkout.payment.events import GatewayOrderIssued, PaymentAttemptFailed, PaymentIntentConsumed
from checkout.payment.gateway.port import GatewayOrder

DEFAULT_TTL_SECONDS = 900
DISMISSED_REASON = "Payment cancelled."


class IntentStatus(Enum):
    CREATED = "CREATED"
    FAILED = "FAILED"
    CONSUMED = "CONSUMED"


def intent_ttl() -> timedelta:
    return timedelta(seconds=int(os.getenv("PAYMENT_INTENT_TTL_SECONDS", DEFAULT_TTL_SECONDS)))


def to_minor_units(amount: float) -> int:
    return int(round(float(amount) * 100))


def _aware(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@checkout.aggregate
class PaymentIntent:
    receipt = String(required=True, max_length=255, unique=True)
    customer_id = Identifier()
    amount = Float(required=True, min_value=0.0)  # major units
    amount_minor = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="INR")
    gateway = String(max_length=50)
    gateway_order_id = String(max_length=255)
    superseded_orders = Text()  # JSON list of earlier {gateway_order_id, amount_minor} for this receipt
    status = String(choices=IntentStatus, default=IntentStatus.CREATED.value)
    attempts = Integer(default=0)
    failure_reason = String(max_length=500)
    notes = Text()  # JSON object passed through to the gateway
    order_id = Identifier()
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, receipt, amount, currency, customer_id=None, notes=None):
        now = datetime.now(UTC)
        return cls(
            receipt=receipt,
            customer_id=customer_id,
            amount=amount,
            amount_minor=to_minor_units(amount),
            currency=currency,
            notes=json.dumps(notes or {}),
            created_at=now,
            updated_at=now,
        )

    def notes_dict(self) -> dict:
        return json.loads(self.notes) if self.notes else {}

    def superseded(self) -> list[dict]:
        return json.loads(self.superseded_orders) if self.superseded_orders else []

    def amount_minor_for(self, gateway_order_id) -> int | None:
        """Amount the gateway order was issued for, current or superseded."""
        if gateway_order_id == self.gateway_order_id:
            return self.amount_minor
        for entry in self.superseded():
            if entry["gateway_order_id"] == gateway_order_id:
                return entry["amount_minor"]
        return None

    def can_reuse(self, amount, currency, now=None) -> bool:
        """Whether the current gateway order is still the right one to pay against."""
        now = now or datetime.now(UTC)
        return (
            self.gateway_order_id is not None
            and self.status == IntentStatus.CREATED.value
            and self.amount_minor == to_minor_units(amount)
            and (self.currency or "").upper() == (currency or "").upper()
            and self.expires_at is not None
            and now < _aware(self.expires_at)
        )

    def issue(self, gateway_order: GatewayOrder, gateway_name, amount, currency, notes=None):
        """Record a fresh gateway order for this receipt."""
        if self.status == IntentStatus.CONSUMED.value:
            raise ValidationError({"receipt": ["This payment has already been completed."]})

        if self.gateway_order_id:
            # Kept so a late payment against the expired order can still be confirmed.
            self.superseded_orders = json.dumps(
                [*self.superseded(), {"gateway_order_id": self.gateway_order_id, "amount_minor": self.amount_minor}]
            )

        now = datetime.now(UTC)
        self.amount = amount
        self.amount_minor = gateway_order.amount
        self.currency = gateway_order.currency
        self.gateway = gateway_name
        self.gateway_order_id = gateway_order.id
        self.status = IntentStatus.CREATED.value
        self.failure_reason = None
        self.attempts = (self.attempts or 0) + 1
        if notes is not None:
            self.notes = json.dumps(notes)
        self.expires_at = now + intent_ttl()
        self.updated_at = now

        self.raise_(
            GatewayOrderIssued(
                intent_id=str(self.id),
                receipt=self.receipt,
                gateway_order_id=gateway_order.id,
                amount=gateway_order.amount,
                currency=gateway_order.currency,
                attempt=self.attempts,
            )
        )

    def record_failure(self, reason=None):
        if self.status == IntentStatus.CONSUMED.value:
            raise ValidationError({"status": ["This payment has already been completed."]})

        self.status = IntentStatus.FAILED.value
        self.failure_reason = reason or DISMISSED_REASON
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentAttemptFailed(
                intent_id=str(self.id),
                gateway_order_id=self.gateway_order_id,
                reason=self.failure_reason,
            )
        )

    def consume(self, order_id, gateway_order_id=None):
        self.status = IntentStatus.CONSUMED.value
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentIntentConsumed(
                intent_id=str(self.id),
                gateway_order_id=gateway_order_id or self.gateway_order_id,
                order_id=str(order_id),
            )
        )
