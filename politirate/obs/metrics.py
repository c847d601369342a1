"""Prometheus metrics for the API process."""

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
RATING_SUBMISSION_COUNTER = Counter(
    "leader_rating_submissions_total",
    "Count of leader ratings written, labelled by whether the row was new.",
    labelnames=("outcome",),
)
POLL_VOTE_COUNTER = Counter(
    "poll_votes_recorded_total",
    "Count of poll responses recorded.",
)
POLL_VOTE_CONFLICT_COUNTER = Counter(
    "poll_vote_conflicts_total",
    "Count of poll responses rejected because the user had already voted.",
)
SUPPORT_TICKET_COUNTER = Counter(
    "support_tickets_created_total",
    "Count of support tickets filed.",
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            route = request.scope.get("route")
            path = getattr(route, "path", path)
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


__all__ = [
    "POLL_VOTE_CONFLICT_COUNTER",
    "POLL_VOTE_COUNTER",
    "PrometheusMiddleware",
    "RATING_SUBMISSION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "SUPPORT_TICKET_COUNTER",
    "metrics_endpoint",
    "metrics_router",
]
