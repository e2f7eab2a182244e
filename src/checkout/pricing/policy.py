"""Pricing constants and the payment-method surcharge table.

Values default to what the storefront has always charged and can be
overridden per deployment through environment variables.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class PaymentMethod(Enum):
    COD = "COD"
    UPI = "UPI"
    CARD = "CARD"
    NET_BANKING = "NET_BANKING"
    WALLET = "WALLET"


# Every method except cash on delivery is collected through the gateway
ONLINE_METHODS = frozenset(m.value for m in PaymentMethod if m is not PaymentMethod.COD)
GATEWAY_NAME = "RAZORPAY"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: float = 5000.0
    standard_shipping_fee: float = 100.0
    payment_fees: MappingProxyType = field(
        default_factory=lambda: MappingProxyType({PaymentMethod.COD.value: 10.0})
    )
    currency: str = "INR"

    @classmethod
    def from_env(cls) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=_env_float("FREE_SHIPPING_THRESHOLD", 5000.0),
            standard_shipping_fee=_env_float("STANDARD_SHIPPING_FEE", 100.0),
            payment_fees=MappingProxyType({PaymentMethod.COD.value: _env_float("COD_FEE", 10.0)}),
            currency=os.getenv("DEFAULT_CURRENCY", "INR").upper(),
        )

    def payment_fee_for(self, method: str | None) -> float:
        if not method:
            return 0.0
        return float(self.payment_fees.get(method, 0.0))


_current_policy: PricingPolicy | None = None


def get_pricing_policy() -> PricingPolicy:
    """Return the active pricing policy, reading the environment on first use."""
    global _current_policy
    if _current_policy is None:
        _current_policy = PricingPolicy.from_env()
    return _current_policy


def set_pricing_policy(policy: PricingPolicy) -> None:
    global _current_policy
    _current_policy = policy


def reset_pricing_policy() -> None:
    global _current_policy
    _current_policy = None
