"""Payment confirmation signature checks."""

import hashlib
import hmac


def canonical_payload(order_id: str, payment_id: str) -> str:
    return f"{order_id}|{payment_id}"


def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of `order_id|payment_id` keyed with the provider secret."""

    return hmac.new(
        secret.encode("utf-8"),
        canonical_payload(order_id, payment_id).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(order_id: str | None, payment_id: str | None, signature: str | None, secret: str) -> bool:
    """Constant-time check of a caller-supplied confirmation signature.

    Missing fields never verify.
    """

    if not order_id or not payment_id or not signature:
        return False
    expected = compute_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
