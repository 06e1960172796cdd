from __future__ import annotations

"""
HTTP metrics and the /metrics exporter.

HTTP series are registered on the same `CollectorRegistry` as the registry's
lifecycle metrics (`AssetRegistry.metrics`), so one scrape returns both:

    http_requests_total{method,path,status}
    http_request_duration_seconds{method,path,status}
    http_inprogress_requests{method}
"""

import time
from typing import Any, Dict

from fastapi import APIRouter, FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from ..metrics import RegistryMetrics


class HttpMetrics:
    def __init__(self, base: RegistryMetrics) -> None:
        self.base = base
        reg = base.registry
        self.http_inprogress = Gauge(
            "http_inprogress_requests",
            "In-progress HTTP requests",
            ["method"],
            registry=reg,
        )
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=reg,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "path", "status"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=reg,
        )

    def render_latest(self) -> bytes:
        return self.base.render_latest()


def _path_template(scope: Scope) -> str:
    # The router stores the matched route in scope; fall back to the raw path
    route = scope.get("route")
    val = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(val, str) and val:
        return val
    return scope.get("path") or ""


class PrometheusMiddleware:
    def __init__(self, app: ASGIApp, metrics: HttpMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        start = time.perf_counter()
        status_code = 500
        self.metrics.http_inprogress.labels(method).inc()

        async def send_wrapped(message: Dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapped)
        finally:
            labels = (method, _path_template(scope), str(status_code))
            self.metrics.http_requests_total.labels(*labels).inc()
            self.metrics.http_request_duration_seconds.labels(*labels).observe(
                time.perf_counter() - start
            )
            self.metrics.http_inprogress.labels(method).dec()


def create_metrics_router(metrics: HttpMetrics, path: str = "/metrics") -> APIRouter:
    router = APIRouter(tags=["metrics"])

    @router.get(path, include_in_schema=False)
    def _metrics() -> Response:
        return Response(content=metrics.render_latest(), media_type=CONTENT_TYPE_LATEST)

    return router


def setup_metrics(app: FastAPI, base: RegistryMetrics, path: str = "/metrics") -> HttpMetrics:
    # One set of HTTP series per collector registry, even across several apps
    metrics = getattr(base, "_http_metrics", None)
    if metrics is None:
        metrics = HttpMetrics(base)
        base._http_metrics = metrics  # type: ignore[attr-defined]
    app.state.http_metrics = metrics
    app.add_middleware(PrometheusMiddleware, metrics=metrics)
    app.include_router(create_metrics_router(metrics, path=path))
    return metrics


__all__ = ["HttpMetrics", "PrometheusMiddleware", "create_metrics_router", "setup_metrics"]
