"""Prometheus metric definitions for the relay."""

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
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Total calls made to the PayPal REST API",
    ["operation", "status_code"],
)
upstream_latency_seconds = Histogram(
    "upstream_latency_seconds",
    "PayPal REST API call latency seconds",
    ["operation"],
)
access_token_cache_hits_total = Counter(
    "access_token_cache_hits_total",
    "Access tokens served from the local cache",
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
