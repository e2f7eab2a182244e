"""Payment gateway port (abstract interface).

The checkout only needs two things from a gateway: a server-created payment
order the client can pay against, and a way to check the signature the
client brings back after paying.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from checkout.payment.signature import signature_is_valid


@dataclass(frozen=True)
class GatewayOrder:
    """The gateway's own handle for a payment, distinct from our Order."""

    id: str
    amount: int  # minor units
    currency: str
    receipt: str
    status: str = "created"


class PaymentGateway(ABC):
    name: str = "GATEWAY"

    @property
    @abstractmethod
    def key_id(self) -> str:
        """Public key handed to the client to open the hosted payment UI."""
        ...

    @property
    @abstractmethod
    def secret(self) -> str: ...

    @abstractmethod
    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        """Create a payment order for ``amount`` minor units."""
        ...

    def verify_payment_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        return signature_is_valid(self.secret, gateway_order_id, gateway_payment_id, signature)
