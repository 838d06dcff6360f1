"""Application settings and logging configuration."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signup.core.durations import parse_duration

_LOG_CONTEXT: dict[str, str] = {"environment": "development", "service": "signup-service"}


class AppSettings(BaseModel):
    """Application identity and runtime settings."""

    environment: Literal["development", "staging", "production"] = "development"
    service: str = "signup-service"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = Field(description="Async SQLAlchemy URL (asyncpg or aiosqlite driver).")

    @field_validator("url")
    @classmethod
    def validate_async_url(cls, value: str) -> str:
        """Ensure SQLAlchemy uses an async driver."""
        if not value.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "database.url must start with 'postgresql+asyncpg://' or 'sqlite+aiosqlite://'."
            )
        return value


class SignupViews(BaseModel):
    """View names handed to the renderer in view mode."""

    signup: str | None = "signup"
    signed_up: str | None = "signed_up"
    resend: str | None = "resend"
    verified: str | None = "verified"
    link_expired: str | None = "link_expired"
    sms_sent: str | None = "sms_sent"


class SignupSettings(BaseModel):
    """Routes, token lifetime and response behaviour of the signup flow."""

    route: str = "/signup"
    resend_route: str = "/signup/resend-verification"
    rest_enabled: bool = False
    rest_route: str = "rest"
    token_expiration: timedelta = timedelta(days=1)
    title: str = "Signup"
    views: SignupViews = Field(default_factory=SignupViews)
    use_login: bool = False
    login_route: str = "/login"
    completion_route: str | None = None
    completion_resend_route: str | None = None
    event_name: str = "signup"
    handle_response: bool = True

    @field_validator("token_expiration", mode="before")
    @classmethod
    def parse_token_expiration(cls, value: Any) -> Any:
        """Accept shorthand durations such as '1 day' or '20m'."""
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator("token_expiration")
    @classmethod
    def validate_positive_expiration(cls, value: timedelta) -> timedelta:
        """Reject zero or negative token lifetimes."""
        if value <= timedelta(0):
            raise ValueError("signup.token_expiration must be positive.")
        return value

    @field_validator("route", "resend_route", "login_route")
    @classmethod
    def validate_route(cls, value: str) -> str:
        """Routes are absolute paths without a trailing slash."""
        if not value.startswith("/"):
            raise ValueError("signup routes must start with '/'.")
        return value.rstrip("/") or "/"


class EmailSettings(BaseModel):
    """Verification email delivery settings."""

    smtp_host: str = "localhost"
    smtp_port: int = 1025
    email_from: str = "no-reply@example.com"
    subject: str = "Verify your email"
    verification_base_url: str = "http://localhost:8000"


class SmsSettings(BaseModel):
    """Phone verification settings."""

    enabled: bool = False
    message: str = "Your verification code is"
    default_region: str = "US"


class Settings(BaseSettings):
    """Root application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings
    signup: SignupSettings = Field(default_factory=SignupSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    sms: SmsSettings = Field(default_factory=SmsSettings)


def _standard_log_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Inject required structured logging fields."""
    context_vars = structlog.contextvars.get_contextvars()
    event_dict.setdefault("correlation_id", str(context_vars.get("correlation_id", "unknown")))
    event_dict.setdefault("environment", _LOG_CONTEXT["environment"])
    event_dict.setdefault("service", _LOG_CONTEXT["service"])
    event_dict.setdefault("timestamp", datetime.now(UTC).isoformat())
    return event_dict


def configure_structlog(settings: Settings) -> None:
    """Configure structlog for JSON output with required fields."""
    _LOG_CONTEXT["environment"] = settings.app.environment
    _LOG_CONTEXT["service"] = settings.app.service

    log_level = getattr(logging, settings.app.log_level, logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _standard_log_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Load and cache application settings from environment variables."""
    return Settings()
