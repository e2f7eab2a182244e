"""Payment gateway factory.

``PAYMENT_GATEWAY`` picks the adapter on first use: ``fake`` (default) or
``razorpay``. Tests swap adapters with ``set_gateway``/``reset_gateway``.
"""

import os

from checkout.payment.gateway.fake_adapter import FakeGateway
from checkout.payment.gateway.port import PaymentGateway
from checkout.payment.gateway.razorpay_adapter import RazorpayGateway

_current_gateway: PaymentGateway | None = None


def _from_env() -> PaymentGateway:
    choice = os.getenv("PAYMENT_GATEWAY", "fake").strip().lower()
    if choice == "fake":
        return FakeGateway()
    if choice == "razorpay":
        return RazorpayGateway.from_env()
    raise RuntimeError(f"Unknown PAYMENT_GATEWAY {choice!r}")


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _from_env()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
