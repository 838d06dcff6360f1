"""Default collaborators for the signup flow, built from settings."""

from __future__ import annotations

from signup.config import Settings
from signup.db.session import get_session_factory
from signup.notifiers.base import Notifier
from signup.notifiers.logging import LoggingNotifier
from signup.notifiers.smtp import SmtpEmailNotifier
from signup.routers.signup import SignupRoutes
from signup.services.events import SignupObserver
from signup.services.signup_flow import SignupFlow
from signup.stores.base import UserStore
from signup.stores.sql import SqlUserStore


def build_email_notifier(settings: Settings) -> Notifier:
    """Use SMTP outside development; log verification links in development."""
    if settings.app.environment == "development":
        return LoggingNotifier(channel="email", message="Verification code:")
    routes = SignupRoutes.from_settings(settings.signup)
    return SmtpEmailNotifier(
        host=settings.email.smtp_host,
        port=settings.email.smtp_port,
        email_from=settings.email.email_from,
        subject=settings.email.subject,
        verification_url=settings.email.verification_base_url.rstrip("/") + routes.signup,
    )


def build_sms_notifier(settings: Settings) -> Notifier | None:
    """Return the SMS notifier, or None when phone verification is disabled.

    SMS delivery is not built in; outside development an SMS-capable
    notifier must be passed to ``create_app``.
    """
    if not settings.sms.enabled or settings.app.environment != "development":
        return None
    return LoggingNotifier(channel="sms", message=settings.sms.message)


def build_user_store() -> UserStore:
    """Return the SQLAlchemy-backed store bound to the configured database."""
    return SqlUserStore(session_factory=get_session_factory())


def build_signup_flow(
    settings: Settings,
    store: UserStore | None = None,
    email_notifier: Notifier | None = None,
    sms_notifier: Notifier | None = None,
    observers: tuple[SignupObserver, ...] = (),
) -> SignupFlow:
    """Assemble the signup flow from settings and optional overrides."""
    if sms_notifier is None:
        sms_notifier = build_sms_notifier(settings)
    elif not settings.sms.enabled:
        sms_notifier = None
    return SignupFlow(
        store=store or build_user_store(),
        email_notifier=email_notifier or build_email_notifier(settings),
        sms_notifier=sms_notifier,
        token_lifetime=settings.signup.token_expiration,
        observers=observers,
        event_name=settings.signup.event_name,
        use_login=settings.signup.use_login,
        phone_region=settings.sms.default_region,
    )
