"""
HERA Gateway - Prometheus Metrics
"""

from prometheus_client import CollectorRegistry, Counter, Histogram

# Custom registry, exposed by GET /metrics
metrics_registry = CollectorRegistry()

http_request_counter = Counter(
    "hera_http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
    registry=metrics_registry,
)

http_request_duration_histogram = Histogram(
    "hera_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=metrics_registry,
)

guardrail_rejection_counter = Counter(
    "hera_guardrail_rejections_total",
    "Total number of requests rejected by a guardrail or payload check",
    ["code"],
    registry=metrics_registry,
)

dispatch_counter = Counter(
    "hera_dispatch_total",
    "Total number of CRUD dispatches",
    ["family", "operation", "result"],
    registry=metrics_registry,
)


def record_http_request(method: str, route: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    http_request_counter.labels(method=method, route=route, status_code=status_code).inc()
    http_request_duration_histogram.labels(method=method, route=route).observe(duration)


def record_dispatch(family: str, operation: str, result: str):
    """Record the outcome of one dispatch ("ok" or the error code)."""
    dispatch_counter.labels(family=family, operation=operation, result=result).inc()


def record_guardrail_rejection(code: str):
    guardrail_rejection_counter.labels(code=code).inc()
