"""Prometheus-style request and signup outcome metrics."""

from __future__ import annotations

from threading import Lock
from time import perf_counter

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

from signup.services.events import SignupEvent

_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class MetricsRegistry:
    """In-process counters rendered in Prometheus exposition format."""

    def __init__(self) -> None:
        """Initialize counters and locks."""
        self._request_counts: dict[tuple[str, str, str], int] = {}
        self._request_seconds: dict[tuple[str, str, str], float] = {}
        self._signup_events: dict[tuple[str, str], int] = {}
        self._lock = Lock()

    def record_request(self, method: str, path: str, status: str, duration_seconds: float) -> None:
        """Record one request measurement for the label set."""
        key = (method, path, status)
        with self._lock:
            self._request_counts[key] = self._request_counts.get(key, 0) + 1
            self._request_seconds[key] = self._request_seconds.get(key, 0.0) + duration_seconds

    def record_signup_event(self, event: SignupEvent) -> None:
        """Count one signup flow outcome; usable directly as a flow observer."""
        key = (event.action, event.outcome)
        with self._lock:
            self._signup_events[key] = self._signup_events.get(key, 0) + 1

    def signup_event_count(self, action: str, outcome: str) -> int:
        """Return the number of recorded events for ``action``/``outcome``."""
        with self._lock:
            return self._signup_events.get((action, outcome), 0)

    def render_prometheus_text(self) -> str:
        """Render metrics in Prometheus exposition format."""
        lines = [
            "# HELP signup_http_requests_total Total HTTP requests seen by the service.",
            "# TYPE signup_http_requests_total counter",
        ]
        with self._lock:
            for method, path, status in sorted(self._request_counts):
                labels = _format_labels(method=method, path=path, status=status)
                count = self._request_counts[(method, path, status)]
                lines.append(f"signup_http_requests_total{{{labels}}} {count}")

            lines.append(
                "# HELP signup_http_request_duration_seconds_sum Total HTTP request time in seconds."
            )
            lines.append("# TYPE signup_http_request_duration_seconds_sum counter")
            for method, path, status in sorted(self._request_seconds):
                labels = _format_labels(method=method, path=path, status=status)
                total = self._request_seconds[(method, path, status)]
                lines.append(f"signup_http_request_duration_seconds_sum{{{labels}}} {total}")

            lines.append("# HELP signup_flow_events_total Signup flow outcomes by action.")
            lines.append("# TYPE signup_flow_events_total counter")
            for action, outcome in sorted(self._signup_events):
                labels = _format_labels(action=action, outcome=outcome)
                count = self._signup_events[(action, outcome)]
                lines.append(f"signup_flow_events_total{{{labels}}} {count}")

        return "\n".join(lines) + "\n"


def _escape_label(value: str) -> str:
    """Escape string values for Prometheus label rendering."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_labels(**labels: str) -> str:
    """Build deterministic label set string."""
    return ",".join(f'{name}="{_escape_label(value)}"' for name, value in labels.items())


DEFAULT_METRICS_REGISTRY = MetricsRegistry()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record metrics for all responses, including failed requests."""

    def __init__(self, app, registry: MetricsRegistry = DEFAULT_METRICS_REGISTRY) -> None:
        """Initialize middleware with optional custom metrics registry."""
        super().__init__(app)
        self._registry = registry

    async def dispatch(self, request: Request, call_next) -> Response:
        """Capture request counts and durations."""
        start = perf_counter()
        path = request.url.path
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            if route is not None:
                path = getattr(route, "path", path)
            self._registry.record_request(
                method=request.method,
                path=path,
                status=str(status_code),
                duration_seconds=perf_counter() - start,
            )


def build_metrics_endpoint(registry: MetricsRegistry = DEFAULT_METRICS_REGISTRY):
    """Build FastAPI-compatible endpoint that serves metrics text."""

    async def metrics_endpoint() -> PlainTextResponse:
        """Return current metrics in Prometheus exposition format."""
        return PlainTextResponse(registry.render_prometheus_text(), media_type=_CONTENT_TYPE)

    return metrics_endpoint
