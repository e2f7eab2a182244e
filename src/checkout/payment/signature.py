"""Gateway payment signature: HMAC-SHA256 over ``order_id|payment_id``, hex encoded."""

import hashlib
import hmac


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def signature_is_valid(secret: str, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
    """Constant-time comparison of ``signature`` against the expected value."""
    if not (secret and gateway_order_id and gateway_payment_id and signature):
        return False
    expected = compute_signature(secret, gateway_order_id, gateway_payment_id)
    return hmac.compare_digest(expected.encode(), str(signature).strip().encode())
