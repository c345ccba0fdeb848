"""Prometheus metric definitions for the checkout service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


checkout_requests_total = Counter("checkout_requests_total", "Total checkout submissions", ["service"])
checkout_success_total = Counter(
    "checkout_success_total",
    "Checkout submissions that completed a payment",
    ["service", "plan"],
)
checkout_failure_total = Counter(
    "checkout_failure_total",
    "Checkout submissions rejected or failed",
    ["service", "reason"],
)
checkout_latency_seconds = Histogram("checkout_latency_seconds", "Checkout latency seconds", ["service"])
gateway_requests_total = Counter(
    "gateway_requests_total",
    "Outbound payment gateway calls",
    ["operation", "outcome"],
)
gateway_request_duration_seconds = Histogram(
    "gateway_request_duration_seconds",
    "Outbound payment gateway call duration seconds",
    ["operation"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
