"""
Prometheus instrumentation for the LoR Tracker API.

Request metrics are labelled with the matched route template (``/api/submissions/{submission_id}``)
so per-record URLs do not explode label cardinality. Domain counters cover accepted status
transitions and notification delivery outcomes.
"""

from __future__ import annotations

import re
import time

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

_ID_SEGMENT = re.compile(r"/\d+(?=/|$)")

http_requests_total = Counter(
    "http_server_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_server_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

http_exceptions_total = Counter(
    "http_server_exceptions_total",
    "Total unhandled exceptions",
    ["method", "path", "exception_type"],
)

submission_transitions_total = Counter(
    "lor_submission_transitions_total",
    "Accepted submission status transitions",
    ["from_status", "to_status"],
)

notifications_total = Counter(
    "lor_notifications_total",
    "Lifecycle notification delivery attempts",
    ["event_type", "outcome"],
)


def record_transition(from_status: str | None, to_status: str) -> None:
    submission_transitions_total.labels(from_status=from_status or "none", to_status=to_status).inc()


def record_notification(event_type: str, outcome: str) -> None:
    notifications_total.labels(event_type=event_type, outcome=outcome).inc()


def normalize_path(path: str) -> str:
    """Fallback for unmatched routes: collapse numeric segments to ``{id}``."""
    return _ID_SEGMENT.sub("/{id}", path)


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or normalize_path(request.url.path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            path = route_label(request)
            http_exceptions_total.labels(method=method, path=path, exception_type=type(exc).__name__).inc()
            self._observe(method, path, 500, start)
            raise

        self._observe(method, route_label(request), response.status_code, start)
        return response

    @staticmethod
    def _observe(method: str, path: str, status: int, start: float) -> None:
        http_requests_total.labels(method=method, path=path, status=status).inc()
        http_request_duration_seconds.labels(method=method, path=path).observe(time.perf_counter() - start)


async def metrics_endpoint(request: Request) -> Response:
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
