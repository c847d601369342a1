"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware, S3AuditSink, mask_payload
from .metrics import (
    POLL_VOTE_CONFLICT_COUNTER,
    POLL_VOTE_COUNTER,
    RATING_SUBMISSION_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    SUPPORT_TICKET_COUNTER,
    PrometheusMiddleware,
    metrics_router,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    service_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "POLL_VOTE_CONFLICT_COUNTER",
    "POLL_VOTE_COUNTER",
    "PrometheusMiddleware",
    "RATING_SUBMISSION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "S3AuditSink",
    "SUPPORT_TICKET_COUNTER",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "mask_payload",
    "metrics_router",
    "service_span",
]
