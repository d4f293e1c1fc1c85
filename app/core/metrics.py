from __future__ import annotations

import time
from typing import cast

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

metrics_router = APIRouter(tags=["monitoring"])

# Labels must stay low-cardinality: never put query text, model output or request ids
# into a label. Route label MUST be a route template or a fixed value.

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=("method", "route", "status_code"),
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=("method", "route", "status_code"),
    # LLM-backed endpoints are slow; keep upper buckets wide.
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

support_queries_total = Counter(
    "support_queries_total",
    "Support queries by terminal outcome and safety risk level",
    labelnames=("outcome", "risk_level"),
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Tokens consumed by successful support completions",
    labelnames=("kind",),
)

llm_estimated_cost_usd_total = Counter(
    "llm_estimated_cost_usd_total",
    "Estimated provider cost of successful support completions (USD)",
)


def record_support_query(
    *,
    outcome: str,
    risk_level: str,
    tokens_prompt: int = 0,
    tokens_completion: int = 0,
    estimated_cost_usd: float = 0.0,
) -> None:
    support_queries_total.labels(outcome=outcome, risk_level=risk_level).inc()
    if tokens_prompt:
        llm_tokens_total.labels(kind="prompt").inc(tokens_prompt)
    if tokens_completion:
        llm_tokens_total.labels(kind="completion").inc(tokens_completion)
    if estimated_cost_usd:
        llm_estimated_cost_usd_total.inc(estimated_cost_usd)


def _safe_route_label(request: Request) -> str:
    """
    Return the route template (e.g. /completions), or "unmatched" for 404s so raw
    paths never become label values.
    """

    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if isinstance(path, str) and path:
        return path
    return "unmatched"


class PrometheusMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route_label = _safe_route_label(request)
            method = request.method
            code = str(int(status_code))
            duration = time.perf_counter() - started
            http_requests_total.labels(method=method, route=route_label, status_code=code).inc()
            http_request_duration_seconds.labels(
                method=method, route=route_label, status_code=code
            ).observe(duration)


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    payload = generate_latest()
    return Response(content=cast(bytes, payload), media_type=CONTENT_TYPE_LATEST)
