"""Prometheus metrics for the API and the ledger query engine."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
LEDGER_QUERY_COUNTER = Counter(
    "ledger_queries_total",
    "Ledger queries executed, by outcome.",
    labelnames=("outcome",),
)
LEDGER_QUERY_LATENCY_SECONDS = Histogram(
    "ledger_query_latency_seconds",
    "Time spent compiling and executing a ledger page query.",
)
LEDGER_FACET_COUNTER = Counter(
    "ledger_facet_queries_total",
    "Facet queries evaluated on demand.",
    labelnames=("facet",),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        path = request.url.path
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def record_ledger_query(outcome: str, duration_seconds: float | None = None) -> None:
    LEDGER_QUERY_COUNTER.labels(outcome=outcome).inc()
    if duration_seconds is not None:
        LEDGER_QUERY_LATENCY_SECONDS.observe(duration_seconds)


__all__ = [
    "LEDGER_FACET_COUNTER",
    "LEDGER_QUERY_COUNTER",
    "LEDGER_QUERY_LATENCY_SECONDS",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_endpoint",
    "metrics_router",
    "record_ledger_query",
]
