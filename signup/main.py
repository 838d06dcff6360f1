"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from signup.config import Settings, configure_structlog, get_settings
from signup.dependencies import build_signup_flow
from signup.error_handlers import register_exception_handlers
from signup.middleware.correlation_id import CorrelationIdMiddleware
from signup.middleware.logging import LoggingMiddleware
from signup.middleware.metrics import (
    DEFAULT_METRICS_REGISTRY,
    MetricsMiddleware,
    MetricsRegistry,
    build_metrics_endpoint,
)
from signup.middleware.security_headers import SecurityHeadersMiddleware
from signup.notifiers.base import Notifier
from signup.routers import health
from signup.routers.channels import ViewRenderer
from signup.routers.signup import SignupRoutes, build_signup_router
from signup.services.events import SignupObserver, log_signup_event
from signup.stores.base import UserStore


def create_app(
    settings: Settings | None = None,
    store: UserStore | None = None,
    email_notifier: Notifier | None = None,
    sms_notifier: Notifier | None = None,
    renderer: ViewRenderer | None = None,
    observers: tuple[SignupObserver, ...] = (),
    metrics_registry: MetricsRegistry = DEFAULT_METRICS_REGISTRY,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_structlog(settings)

    flow = build_signup_flow(
        settings,
        store=store,
        email_notifier=email_notifier,
        sms_notifier=sms_notifier,
        observers=(log_signup_event, metrics_registry.record_signup_event, *observers),
    )
    routes = SignupRoutes.from_settings(settings.signup)

    app = FastAPI(title=settings.app.service)
    app.state.signup_flow = flow
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, no_store_prefixes=(routes.signup,))
    app.add_middleware(MetricsMiddleware, registry=metrics_registry)
    app.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(app, environment=settings.app.environment)

    app.add_api_route(
        "/metrics",
        build_metrics_endpoint(metrics_registry),
        methods=["GET"],
        include_in_schema=False,
    )
    app.include_router(build_signup_router(flow, settings.signup, renderer=renderer))
    app.include_router(health.router)
    return app
