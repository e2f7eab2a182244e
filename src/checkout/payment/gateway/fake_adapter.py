"""Configurable fake payment gateway for development and testing.

No network calls: orders get ``order_fake_*`` ids and signatures use a
local secret, so tests can sign payments exactly as the real gateway would.
"""

from uuid import uuid4

from checkout.errors import PaymentGatewayError
from checkout.payment.gateway.port import GatewayOrder, PaymentGateway


class FakeGateway(PaymentGateway):
    name = "RAZORPAY"

    def __init__(self, key_id: str = "rzp_test_fake", secret: str = "fake_secret") -> None:
        self._key_id = key_id
        self._secret = secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def secret(self) -> str:
        return self._secret

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        self.calls.append(
            {
                "method": "create_order",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            }
        )
        if not self.should_succeed:
            raise PaymentGatewayError({"gateway": [self.failure_reason]})

        return GatewayOrder(
            id=f"order_fake_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )
