"""Middleware package exports."""

from signup.middleware.correlation_id import CorrelationIdMiddleware
from signup.middleware.logging import LoggingMiddleware
from signup.middleware.metrics import (
    DEFAULT_METRICS_REGISTRY,
    MetricsMiddleware,
    MetricsRegistry,
    build_metrics_endpoint,
)
from signup.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "DEFAULT_METRICS_REGISTRY",
    "CorrelationIdMiddleware",
    "LoggingMiddleware",
    "MetricsMiddleware",
    "MetricsRegistry",
    "SecurityHeadersMiddleware",
    "build_metrics_endpoint",
]
