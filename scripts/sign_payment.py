"""Compute a checkout confirmation signature and optionally submit it.

Useful for exercising `/api/payments/verify` against a test-mode key without
going through the checkout widget.
"""

import argparse
import json
import os

import httpx

from payproxy.services.gateway.signature import compute_signature


def main() -> None:
    """Print the signature for order/payment ids, then POST it when --base-url is given."""

    parser = argparse.ArgumentParser(description="Sign a payment confirmation.")
    parser.add_argument("--order-id", required=True)
    parser.add_argument("--payment-id", required=True)
    parser.add_argument("--secret", default=os.getenv("RAZORPAY_KEY_SECRET"))
    parser.add_argument("--base-url", default=None, help="Proxy URL to submit the confirmation to")
    parser.add_argument("--api-key", default=os.getenv("API_KEY"))
    args = parser.parse_args()

    if not args.secret:
        raise SystemExit("Provide --secret or set RAZORPAY_KEY_SECRET")

    signature = compute_signature(args.order_id, args.payment_id, args.secret)
    print(signature)
    if not args.base_url:
        return

    resp = httpx.post(
        f"{args.base_url}/api/payments/verify",
        json={"order_id": args.order_id, "payment_id": args.payment_id, "signature": signature},
        headers={"x-api-key": args.api_key or ""},
        timeout=10.0,
    )
    print(resp.status_code, json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
