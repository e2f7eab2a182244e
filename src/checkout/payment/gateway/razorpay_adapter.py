"""Razorpay adapter over its REST API.

Orders are created with ``POST /orders`` using HTTP Basic auth
(key id : key secret). Payment signatures are verified locally with the
key secret; no API call is involved.
"""

import os

import httpx
import structlog

from checkout.errors import PaymentGatewayError
from checkout.payment.gateway.port import GatewayOrder, PaymentGateway

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    name = "RAZORPAY"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not key_id or not key_secret:
            raise RuntimeError("Razorpay key id and secret are required")
        self._key_id = key_id
        self._key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "RazorpayGateway":
        return cls(
            key_id=os.getenv("RAZORPAY_KEY_ID", ""),
            key_secret=os.getenv("RAZORPAY_KEY_SECRET", ""),
            base_url=os.getenv("RAZORPAY_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("RAZORPAY_TIMEOUT_SECONDS", "10")),
        )

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def secret(self) -> str:
        return self._key_secret

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict | None = None) -> GatewayOrder:
        payload = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes or {}}
        try:
            response = self._client.post("/orders", json=payload)
        except httpx.HTTPError as exc:
            logger.error("razorpay_unreachable", receipt=receipt, error=str(exc))
            raise PaymentGatewayError({"gateway": ["Payment gateway is unreachable. Please try again."]}) from exc

        if response.is_error:
            description = _error_description(response)
            logger.error("razorpay_order_failed", receipt=receipt, status_code=response.status_code, error=description)
            raise PaymentGatewayError({"gateway": [description]})

        data = response.json()
        return GatewayOrder(
            id=data["id"],
            amount=int(data.get("amount", amount)),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status", "created"),
        )

    def close(self) -> None:
        self._client.close()


def _error_description(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return f"Unable to create payment order (HTTP {response.status_code})."
