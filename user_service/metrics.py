"""
Prometheus metrics for User Service.

Tracks authentication operations, account changes and request performance.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "user_http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "user_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# Authentication metrics
user_login_total = Counter("user_login_total", "Total user logins", ["status"])

user_register_total = Counter("user_register_total", "Total user registrations", ["status"])

# Administration metrics
user_admin_operations_total = Counter(
    "user_admin_operations_total", "Total administrative user operations", ["operation", "status"]
)

# Rate limiting metrics
user_rate_limit_hits = Counter(
    "user_rate_limit_hits_total", "Total rate limit hits", ["endpoint"]
)


def _status(success: bool) -> str:
    return "success" if success else "failure"


def track_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Track HTTP request metrics."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)


def track_login(success: bool):
    """Track login metrics."""
    user_login_total.labels(status=_status(success)).inc()


def track_register(success: bool):
    """Track registration metrics."""
    user_register_total.labels(status=_status(success)).inc()


def track_admin_operation(operation: str, success: bool):
    """Track administrative update/delete metrics."""
    user_admin_operations_total.labels(operation=operation, status=_status(success)).inc()


def track_rate_limit_hit(endpoint: str):
    """Track rate limit hits."""
    user_rate_limit_hits.labels(endpoint=endpoint).inc()


async def metrics_endpoint():
    """
    Prometheus metrics endpoint.

    Returns:
        Response with Prometheus metrics in text format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
