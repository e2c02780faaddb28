"""Deprecated route names behave exactly like their canonical routes."""

import pytest
from fastapi import APIRouter
from fastapi.routing import APIRoute

from payproxy.services.gateway.routes import LEGACY_ROUTE_ALIASES, register_legacy_aliases, router
from tests.conftest import AUTH


VALID_SIGNATURE = "9e6482e53dfebc24f1d531409a9bc647d4e8be803086997f6779e527ff41a4ab"

PAIRS = [
    ("POST", "/create-order", "/api/orders", {"amount": 5000}),
    ("POST", "/create-order", "/api/orders", {"currency": "INR"}),
    ("GET", "/orders/order_123", "/api/orders/order_123", None),
    ("GET", "/orders/order_missing", "/api/orders/order_missing", None),
    ("GET", "/orders", "/api/orders", None),
    ("POST", "/verify-payment", "/api/payments/verify", {"order_id": "order_123", "payment_id": "pay_123", "signature": VALID_SIGNATURE}),
    ("POST", "/verify-payment", "/api/payments/verify", {"order_id": "order_123", "payment_id": "pay_123", "signature": "bad"}),
    ("POST", "/capture-payment", "/api/payments/capture", {"payment_id": "pay_123", "amount": 100}),
    ("POST", "/capture-payment", "/api/payments/capture", {"amount": 100}),
]


@pytest.fixture
def canned(provider):
    provider.respond("POST", "/orders", json_body={"id": "order_123", "status": "created"})
    provider.respond("GET", "/orders/order_123", json_body={"id": "order_123", "status": "paid"})
    provider.respond("GET", "/orders", json_body={"entity": "collection", "count": 1, "items": [{"id": "order_123"}]})
    provider.respond("GET", "/payments/pay_123", json_body={"id": "pay_123", "status": "captured"})
    provider.respond("POST", "/payments/pay_123/capture", json_body={"id": "pay_123", "status": "captured"})
    return provider


@pytest.mark.parametrize("method,alias,canonical,body", PAIRS)
def test_alias_matches_canonical(client, canned, method, alias, canonical, body):
    via_canonical = client.request(method, canonical, json=body, headers=AUTH)
    canonical_calls = len(canned.requests)
    canonical_outbound = canned.requests[-1].content if canonical_calls else None

    via_alias = client.request(method, alias, json=body, headers=AUTH)

    assert via_alias.status_code == via_canonical.status_code
    assert via_alias.content == via_canonical.content
    assert len(canned.requests) == 2 * canonical_calls
    if canonical_calls:
        assert canned.requests[-1].url == canned.requests[canonical_calls - 1].url
        if method == "POST" and canonical != "/api/orders":
            assert canned.requests[-1].content == canonical_outbound


def test_aliases_share_canonical_endpoints():
    routes = {
        (method, route.path): route
        for route in router.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }
    for (method, alias_path), target in LEGACY_ROUTE_ALIASES.items():
        assert routes[(method, alias_path)].endpoint is routes[target].endpoint
        assert routes[(method, alias_path)].include_in_schema is False


def test_alias_to_unknown_route_fails_registration():
    with pytest.raises(RuntimeError):
        register_legacy_aliases(APIRouter(), {("GET", "/old"): ("GET", "/api/missing")})


def test_aliases_hidden_from_openapi(client):
    paths = client.get("/openapi.json", headers=AUTH).json()["paths"]

    assert "/api/orders" in paths
    assert "/create-order" not in paths
    assert "/capture-payment" not in paths
