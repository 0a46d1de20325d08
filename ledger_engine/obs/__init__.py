"""Observability utilities."""

from .metrics import (
    LEDGER_FACET_COUNTER,
    LEDGER_QUERY_COUNTER,
    LEDGER_QUERY_LATENCY_SECONDS,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
    record_ledger_query,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    start_span,
)

__all__ = [
    "LEDGER_FACET_COUNTER",
    "LEDGER_QUERY_COUNTER",
    "LEDGER_QUERY_LATENCY_SECONDS",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "record_ledger_query",
    "start_span",
]
