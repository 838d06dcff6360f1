"""Signup routes: create account, resend verification, verify token."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from pydantic import ValidationError as PayloadValidationError
from starlette.responses import Response

from signup.config import SignupSettings
from signup.routers.channels import (
    HostChannel,
    ResponseChannel,
    RestChannel,
    ViewChannel,
    ViewRenderer,
    json_view_renderer,
)
from signup.schemas.signup import ResendForm, SignupForm
from signup.services.errors import (
    REPORTED_ERRORS,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from signup.services.signup_flow import SignupFlow

PayloadT = TypeVar("PayloadT", bound=BaseModel)


@dataclass(frozen=True)
class SignupRoutes:
    """Resolved route paths, including the REST prefix when enabled."""

    signup: str
    resend: str

    @classmethod
    def from_settings(cls, settings: SignupSettings) -> SignupRoutes:
        """Apply the REST route prefix to the configured paths."""
        if settings.rest_enabled:
            prefix = "/" + settings.rest_route.strip("/")
            return cls(signup=prefix + settings.route, resend=prefix + settings.resend_route)
        return cls(signup=settings.route, resend=settings.resend_route)

    @property
    def verify(self) -> str:
        """Verification link path template."""
        return self.signup.rstrip("/") + "/{token}"


def _redirect_suffix(request: Request) -> str:
    """Carry a ``?redirect=`` target into form actions."""
    redirect = request.query_params.get("redirect")
    return f"?redirect={quote(redirect, safe='')}" if redirect else ""


def _safe_redirect(request: Request) -> str | None:
    """Return the ``?redirect=`` target when it is a local path."""
    redirect = request.query_params.get("redirect")
    if redirect and redirect.startswith("/") and not redirect.startswith("//"):
        return redirect
    return None


async def _read_payload(request: Request, model: type[PayloadT]) -> PayloadT:
    """Parse a JSON or form-encoded body into ``model``."""
    content_type = request.headers.get("content-type", "")
    payload: Any
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as exc:
            raise ValidationError("Invalid request payload.") from exc
    else:
        payload = dict(await request.form())
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request payload.")
    try:
        return model.model_validate(payload)
    except PayloadValidationError as exc:
        raise ValidationError("Invalid request payload.") from exc


def build_signup_router(
    flow: SignupFlow,
    settings: SignupSettings,
    renderer: ViewRenderer | None = None,
) -> APIRouter:
    """Build the signup router for ``flow``.

    The resend route is registered before the token route so that
    ``/signup/resend-verification`` is never read as a token.
    """
    routes = SignupRoutes.from_settings(settings)
    views = settings.views
    host_channel = HostChannel()
    rest_channel = RestChannel()
    view_channel = ViewChannel(renderer or json_view_renderer, settings)

    def select_channel() -> ResponseChannel:
        """Pick the output channel for the current request."""
        if not settings.handle_response:
            return host_channel
        return rest_channel if settings.rest_enabled else view_channel

    router = APIRouter(tags=["signup"])

    @router.get(routes.signup, name="signup_form")
    async def signup_form(request: Request) -> Response:
        """Show the signup form."""
        channel = select_channel()
        action = routes.signup + _redirect_suffix(request)
        return channel.form(request, views.signup, "signup", action)

    @router.post(routes.signup, name="signup")
    async def signup(request: Request) -> Response:
        """Create an account and send the first verification code."""
        channel = select_channel()
        try:
            payload = await _read_payload(request, SignupForm)
            await flow.create(name=payload.name, email=payload.email, password=payload.password)
        except ConflictError as exc:
            if exc.use_login and settings.handle_response:
                return RedirectResponse(settings.login_route, status_code=307)
            return channel.failure(request, exc, views.signup, "signup")
        except REPORTED_ERRORS as exc:
            return channel.failure(request, exc, views.signup, "signup")

        redirect = settings.completion_route or _safe_redirect(request)
        return channel.success(request, views.signed_up, "signed_up", redirect)

    @router.get(routes.resend, name="resend_form")
    async def resend_form(request: Request) -> Response:
        """Show the resend-verification form."""
        channel = select_channel()
        action = routes.resend + _redirect_suffix(request)
        return channel.form(request, views.resend, "resend", action)

    @router.post(routes.resend, name="resend")
    async def resend(request: Request) -> Response:
        """Send a new verification code."""
        channel = select_channel()
        try:
            payload = await _read_payload(request, ResendForm)
            result = await flow.resend(email=payload.email, name=payload.name, phone=payload.phone)
        except NotFoundError as exc:
            return channel.unknown_account(request, exc, routes.signup)
        except REPORTED_ERRORS as exc:
            return channel.failure(request, exc, views.resend, "resend")

        if result.outcome == "verified":
            redirect = settings.completion_resend_route or _safe_redirect(request)
            return channel.success(request, views.verified, "verified", redirect)
        if result.outcome == "sms_sent":
            return channel.success(request, views.sms_sent, "sms_sent")
        return channel.success(request, views.signed_up, "signed_up")

    @router.get(routes.verify, name="verify")
    async def verify(token: str, request: Request) -> Response:
        """Consume a verification link."""
        channel = select_channel()
        try:
            await flow.verify(token)
        except REPORTED_ERRORS as exc:
            return channel.failure(request, exc, views.link_expired, "link_expired")

        redirect = settings.completion_resend_route or _safe_redirect(request)
        return channel.success(request, views.verified, "verified", redirect)

    return router

