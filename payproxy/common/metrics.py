"""Prometheus metric definitions for the proxy."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
auth_decisions_total = Counter(
    "auth_decisions_total",
    "Credential gate decisions",
    ["service", "outcome"],
)
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Calls made to the payment provider",
    ["service", "operation", "outcome"],
)
upstream_latency_seconds = Histogram(
    "upstream_latency_seconds",
    "Payment provider call latency seconds",
    ["service", "operation"],
)
signature_verifications_total = Counter(
    "signature_verifications_total",
    "Payment signature verification attempts",
    ["service", "result"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
