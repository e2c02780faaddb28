"""Upstream relay to the Razorpay REST API.

Each operation makes exactly one basic-authenticated call and returns an
`UpstreamResult` instead of raising, so route handlers translate success and
failure in one place. Local validation failures raise `ValidationFailure`
before any network traffic.
"""

from dataclasses import dataclass
from time import perf_counter, time
from typing import Any
from urllib.parse import quote

import httpx

from payproxy.common.config import ProxySettings
from payproxy.common.logging import logger
from payproxy.common.metrics import upstream_latency_seconds, upstream_requests_total
from payproxy.services.gateway.errors import UpstreamFailure, ValidationFailure
from payproxy.services.gateway.schemas import (
    OrderCreateRequest,
    OrderListFilters,
    PaymentCaptureRequest,
)


DEFAULT_CURRENCY = "INR"


@dataclass(frozen=True)
class UpstreamSuccess:
    status_code: int
    payload: Any


UpstreamResult = UpstreamSuccess | UpstreamFailure


def build_upstream_client(
    settings: ProxySettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Shared async client carrying the provider base URL and credentials."""

    return httpx.AsyncClient(
        base_url=settings.razorpay_api_url,
        auth=(settings.razorpay_key_id, settings.razorpay_key_secret),
        timeout=httpx.Timeout(settings.upstream_timeout_seconds),
        transport=transport,
    )


def _segment(value: str) -> str:
    return quote(value, safe="")


def default_receipt() -> str:
    return f"receipt_{int(time() * 1000)}"


class RazorpayRelay:
    """Thin validated pass-through for orders and payments."""

    def __init__(self, client: httpx.AsyncClient, settings: ProxySettings) -> None:
        self.client = client
        self.enforce_payment_capture = settings.enforce_payment_capture
        self.service_name = settings.service_name

    async def _call(
        self,
        operation: str,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> UpstreamResult:
        start = perf_counter()
        try:
            response = await self.client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            result: UpstreamResult = UpstreamFailure(transport_error=str(exc) or exc.__class__.__name__)
        else:
            result = self._read_response(response)
        finally:
            upstream_latency_seconds.labels(
                service=self.service_name,
                operation=operation,
            ).observe(max(0.0, perf_counter() - start))

        outcome = "success" if isinstance(result, UpstreamSuccess) else "failure"
        upstream_requests_total.labels(
            service=self.service_name,
            operation=operation,
            outcome=outcome,
        ).inc()
        if isinstance(result, UpstreamFailure):
            logger.error(
                "upstream %s failed status=%s detail=%s",
                operation,
                result.status_code,
                result.payload if result.payload is not None else result.transport_error,
            )
        return result

    @staticmethod
    def _read_response(response: httpx.Response) -> UpstreamResult:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_success:
            if payload is None:
                return UpstreamFailure(
                    status_code=response.status_code,
                    transport_error="provider returned a non-JSON response",
                )
            return UpstreamSuccess(status_code=response.status_code, payload=payload)
        return UpstreamFailure(
            status_code=response.status_code,
            payload=payload,
            transport_error=response.text or f"provider responded with {response.status_code}",
        )

    def order_body(self, req: OrderCreateRequest) -> dict[str, Any]:
        """Outbound order body; raises when `amount` is missing."""

        if req.amount is None:
            raise ValidationFailure("amount is required")
        body: dict[str, Any] = {
            "amount": req.amount,
            "currency": req.currency or DEFAULT_CURRENCY,
            "receipt": req.receipt or default_receipt(),
            "notes": req.notes or {},
        }
        if self.enforce_payment_capture:
            body["payment_capture"] = 1
        elif req.payment_capture is not None:
            body["payment_capture"] = req.payment_capture
        return body

    async def create_order(self, req: OrderCreateRequest) -> UpstreamResult:
        body = self.order_body(req)
        logger.info(
            "creating order amount=%s currency=%s receipt=%s",
            body["amount"],
            body["currency"],
            body["receipt"],
        )
        result = await self._call("create_order", "POST", "/orders", json=body)
        if isinstance(result, UpstreamSuccess) and isinstance(result.payload, dict):
            logger.info("order created id=%s", result.payload.get("id"))
        return result

    async def get_order(self, order_id: str) -> UpstreamResult:
        logger.info("fetching order order_id=%s", order_id)
        return await self._call("get_order", "GET", f"/orders/{_segment(order_id)}")

    async def list_orders(self, filters: OrderListFilters) -> UpstreamResult:
        params = filters.query_params()
        logger.info("listing orders params=%s", params or "none")
        result = await self._call("list_orders", "GET", "/orders", params=params or None)
        if isinstance(result, UpstreamSuccess) and isinstance(result.payload, dict):
            logger.info("listed orders count=%s", result.payload.get("count"))
        return result

    async def fetch_payment(self, payment_id: str) -> UpstreamResult:
        return await self._call("fetch_payment", "GET", f"/payments/{_segment(payment_id)}")

    async def capture_payment(self, req: PaymentCaptureRequest) -> UpstreamResult:
        if not req.payment_id:
            raise ValidationFailure("payment_id is required")
        body: dict[str, Any] = {}
        if req.amount is not None:
            body["amount"] = req.amount
        logger.info("capturing payment payment_id=%s amount=%s", req.payment_id, req.amount or "full")
        result = await self._call(
            "capture_payment",
            "POST",
            f"/payments/{_segment(req.payment_id)}/capture",
            json=body,
        )
        if isinstance(result, UpstreamSuccess) and isinstance(result.payload, dict):
            logger.info("payment captured status=%s", result.payload.get("status"))
        return result
