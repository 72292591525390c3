"""Prometheus HTTP request metrics middleware for FastAPI.

Tracks:
- ``wallet_auth_http_requests_total`` (counter) by method, route, status
- ``wallet_auth_http_request_duration_seconds`` (histogram) by method, route
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

_LABELS = ("method", "path", "status_code")
_DURATION_LABELS = ("method", "path")


def _route_path(request: Request) -> str:
    """Route template such as ``/wallets/{address}``, falling back to the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that records request count and duration."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._request_count = Counter(
            "wallet_auth_http_requests",
            "Total HTTP requests",
            _LABELS,
            registry=registry,
        )
        self._request_duration = Histogram(
            "wallet_auth_http_request_duration_seconds",
            "HTTP request duration in seconds",
            _DURATION_LABELS,
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        """Wrap each request with timing and counting."""
        method = request.method
        start = time.monotonic()

        response: Response = await call_next(request)

        duration = time.monotonic() - start
        path = _route_path(request)

        self._request_count.labels(
            method=method,
            path=path,
            status_code=str(response.status_code),
        ).inc()
        self._request_duration.labels(method=method, path=path).observe(duration)

        return response
