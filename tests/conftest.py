"""Shared fixtures: a fake provider behind `httpx.MockTransport` and a proxy app."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from payproxy.common.config import ProxySettings
from payproxy.services.gateway.main import create_app


API_KEY = "test-proxy-key-123"
KEY_ID = "rzp_test_id"
KEY_SECRET = "test_key_secret"
PROVIDER_URL = "https://provider.test/v1"
AUTH = {"X-API-Key": API_KEY}


class FakeProvider:
    """Records outbound calls and replays canned responses keyed by (method, path)."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self.error: Exception | None = None

    def respond(self, method: str, path: str, status_code: int = 200, json_body=None, text=None) -> None:
        if text is not None:
            response = httpx.Response(status_code, text=text)
        else:
            response = httpx.Response(status_code, json=json_body if json_body is not None else {})
        self.routes[(method, f"/v1{path}")] = response

    def fail_with(self, exc: Exception) -> None:
        self.error = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        canned = self.routes.get((request.method, request.url.path))
        if canned is None:
            return httpx.Response(
                404,
                json={"error": {"code": "BAD_REQUEST_ERROR", "description": "The requested URL was not found on the server."}},
            )
        return httpx.Response(canned.status_code, content=canned.content, headers=canned.headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def make_settings(**overrides) -> ProxySettings:
    values = {
        "api_key": API_KEY,
        "razorpay_key_id": KEY_ID,
        "razorpay_key_secret": KEY_SECRET,
        "razorpay_api_url": PROVIDER_URL,
    }
    values.update(overrides)
    return ProxySettings(_env_file=None, **values)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def settings() -> ProxySettings:
    return make_settings()


@pytest.fixture
def client(settings, provider):
    with TestClient(create_app(settings, transport=provider.transport)) as test_client:
        yield test_client
