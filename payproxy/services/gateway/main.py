"""Process entrypoint and app factory for the payment proxy.

Every route except `/health` sits behind the shared-secret gate. Provider
calls go through one pooled async client opened with the app lifecycle.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from payproxy.common.config import ProxySettings, load_settings
from payproxy.common.logging import configure_logging, logger, request_id_ctx
from payproxy.common.metrics import (
    http_request_duration_seconds,
    http_requests_total,
    metrics_response,
)
from payproxy.common.startup import log_startup_config
from payproxy.common.tracing import instrument_app, setup_tracing
from payproxy.services.gateway.auth import API_KEY_HEADER, CredentialGate, credential_gate_middleware
from payproxy.services.gateway.errors import ProxyError
from payproxy.services.gateway.relay import RazorpayRelay, build_upstream_client
from payproxy.services.gateway.routes import router


REQUEST_ID_HEADER = "x-request-id"
UNMATCHED_ROUTE = "unmatched"
UNAUTHORIZED_ROUTE = "unauthorized"


def metrics_middleware(service_name: str):
    """Record request count and latency for every HTTP call."""

    async def record_metrics(request: Request, call_next):
        start = perf_counter()
        route = UNMATCHED_ROUTE
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            elif status_code == 401:
                route = UNAUTHORIZED_ROUTE
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    return record_metrics


async def request_context_middleware(request: Request, call_next):
    """Bind a request id to the logging context and echo it back."""

    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    request_id_ctx.set(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


async def proxy_error_handler(request: Request, exc: ProxyError):
    logger.warning("request rejected path=%s reason=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning("malformed request path=%s", request.url.path)
    return JSONResponse(
        status_code=400,
        content={"error": "invalid request body", "details": jsonable_encoder(exc.errors())},
    )


async def unexpected_error_middleware(request: Request, call_next):
    """Answer any unhandled fault with a generic 500 inside the CORS and request-id layers."""

    try:
        return await call_next(request)
    except Exception:
        logger.exception("unhandled error path=%s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    settings: ProxySettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy app around one settings object.

    `transport` replaces the network transport of the provider client, which
    lets tests stand in for the provider.
    """

    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the provider client for the app's lifetime."""

        client = build_upstream_client(settings, transport)
        app.state.relay = RazorpayRelay(client, settings)
        logger.info("provider client ready base_url=%s", settings.razorpay_api_url)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Razorpay Payment Proxy", lifespan=lifespan)
    app.state.settings = settings
    instrument_app(app)

    # Last registered runs first: CORS, request context, metrics, gate, error guard.
    gate = CredentialGate(settings.api_key, settings.service_name)
    app.middleware("http")(unexpected_error_middleware)
    app.middleware("http")(credential_gate_middleware(gate))
    app.middleware("http")(metrics_middleware(settings.service_name))
    app.middleware("http")(request_context_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", API_KEY_HEADER],
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(router)

    @app.get("/health")
    def health():
        """Unauthenticated liveness probe."""

        return {"status": "ok"}

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    return app


def run() -> None:
    """Validate configuration, then serve; exits non-zero when config is incomplete."""

    try:
        settings = load_settings()
    except ValidationError as exc:
        configure_logging("payment-proxy")
        invalid = ", ".join(".".join(str(part) for part in err["loc"]).upper() for err in exc.errors())
        logger.error("refusing to start, missing or invalid configuration: %s", invalid)
        raise SystemExit(1) from exc

    configure_logging(settings.service_name, settings.log_level)
    setup_tracing(settings.service_name, settings.otel_exporter_otlp_endpoint)
    log_startup_config(settings)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
