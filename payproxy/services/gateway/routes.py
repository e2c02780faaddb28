"""Canonical proxy routes and their deprecated aliases.

Legacy clients still call the pre-`/api` paths. Each alias is registered with
the canonical route's endpoint function when this module is imported, so an
alias shares validation, authentication and response handling by construction.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from payproxy.common.config import ProxySettings
from payproxy.common.logging import logger, order_id_ctx, payment_id_ctx
from payproxy.common.metrics import signature_verifications_total
from payproxy.services.gateway.errors import UpstreamFailure, normalize_upstream_error
from payproxy.services.gateway.relay import RazorpayRelay, UpstreamResult
from payproxy.services.gateway.schemas import (
    OrderCreateRequest,
    OrderListFilters,
    PaymentCaptureRequest,
    PaymentVerifyRequest,
)
from payproxy.services.gateway.signature import verify_signature


INVALID_SIGNATURE = "Invalid signature"

LEGACY_ROUTE_ALIASES: dict[tuple[str, str], tuple[str, str]] = {
    ("POST", "/create-order"): ("POST", "/api/orders"),
    ("GET", "/orders/{order_id}"): ("GET", "/api/orders/{order_id}"),
    ("GET", "/orders"): ("GET", "/api/orders"),
    ("POST", "/verify-payment"): ("POST", "/api/payments/verify"),
    ("POST", "/capture-payment"): ("POST", "/api/payments/capture"),
}

router = APIRouter()


def get_relay(request: Request) -> RazorpayRelay:
    return request.app.state.relay


def get_settings(request: Request) -> ProxySettings:
    return request.app.state.settings


def relay_response(result: UpstreamResult, extra: dict[str, Any] | None = None) -> JSONResponse:
    """Pass provider payloads through verbatim; normalize failures."""

    if isinstance(result, UpstreamFailure):
        normalized = normalize_upstream_error(result)
        return JSONResponse(
            status_code=normalized.status_code,
            content={**(extra or {}), **normalized.body},
        )
    return JSONResponse(content=result.payload)


@router.post("/api/orders")
async def create_order(
    req: OrderCreateRequest | None = None,
    relay: RazorpayRelay = Depends(get_relay),
):
    """Create an order; `payment_capture` is forced to 1 when capture is enforced."""

    result = await relay.create_order(req or OrderCreateRequest())
    return relay_response(result)


@router.get("/api/orders/{order_id}")
async def get_order(order_id: str, relay: RazorpayRelay = Depends(get_relay)):
    order_id_ctx.set(order_id)
    return relay_response(await relay.get_order(order_id))


@router.get("/api/orders")
async def list_orders(
    from_: str | None = Query(default=None, alias="from"),
    to: str | None = None,
    count: str | None = None,
    skip: str | None = None,
    relay: RazorpayRelay = Depends(get_relay),
):
    filters = OrderListFilters.model_validate({"from": from_, "to": to, "count": count, "skip": skip})
    return relay_response(await relay.list_orders(filters))


@router.post("/api/payments/verify")
async def verify_payment(
    req: PaymentVerifyRequest | None = None,
    relay: RazorpayRelay = Depends(get_relay),
    settings: ProxySettings = Depends(get_settings),
):
    """Check the checkout signature locally, then report the payment's status.

    A mismatch is answered with 200 and `verified: false`; existing callers
    branch on that field rather than on the status code.
    """

    req = req or PaymentVerifyRequest()
    order_id_ctx.set(req.order_id or "")
    payment_id_ctx.set(req.payment_id or "")

    verified = verify_signature(req.order_id, req.payment_id, req.signature, settings.razorpay_key_secret)
    signature_verifications_total.labels(
        service=settings.service_name,
        result="valid" if verified else "invalid",
    ).inc()
    if not verified:
        logger.warning("signature verification failed")
        return {"verified": False, "error": INVALID_SIGNATURE}

    result = await relay.fetch_payment(req.payment_id)
    if isinstance(result, UpstreamFailure):
        return relay_response(result, extra={"verified": False})

    payment = result.payload
    status = payment.get("status") if isinstance(payment, dict) else None
    logger.info("payment verified status=%s", status)
    return {"verified": True, "status": status, "payment": payment}


@router.post("/api/payments/capture")
async def capture_payment(
    req: PaymentCaptureRequest | None = None,
    relay: RazorpayRelay = Depends(get_relay),
):
    req = req or PaymentCaptureRequest()
    payment_id_ctx.set(req.payment_id or "")
    return relay_response(await relay.capture_payment(req))


@router.get("/api")
def service_descriptor(request: Request, settings: ProxySettings = Depends(get_settings)):
    """Static description of every route this app serves, aliases listed separately."""

    return {
        "service": settings.service_name,
        "endpoints": [
            {"method": method, "path": route.path}
            for route in request.app.routes
            if isinstance(route, APIRoute) and route.include_in_schema
            for method in sorted(route.methods)
        ],
        "aliases": {
            f"{method} {path}": f"{target_method} {target_path}"
            for (method, path), (target_method, target_path) in LEGACY_ROUTE_ALIASES.items()
        },
    }


def register_legacy_aliases(
    target: APIRouter,
    aliases: dict[tuple[str, str], tuple[str, str]],
) -> None:
    """Expose each alias path with its canonical route's endpoint."""

    canonical = {
        (method, route.path): route
        for route in target.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }
    for (method, alias_path), key in aliases.items():
        route = canonical.get(key)
        if route is None:
            raise RuntimeError(f"alias {method} {alias_path} targets unknown route {key[0]} {key[1]}")
        target.add_api_route(
            alias_path,
            route.endpoint,
            methods=[method],
            name=f"{route.name}_legacy",
            include_in_schema=False,
        )


register_legacy_aliases(router, LEGACY_ROUTE_ALIASES)
