"""Output channels: JSON for REST mode, rendered views otherwise."""

from __future__ import annotations

from html import escape
from typing import Any, Protocol

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.responses import Response

from signup.config import SignupSettings
from signup.services.errors import SignupError

_MISSING_VIEW_HTML = (
    "<p>No view has been configured for this signup page.</p>"
    "<p>Please set a view name for \"{name}\" in the signup settings.</p>"
)


class ViewRenderer(Protocol):
    """Render a named view with a template context."""

    def __call__(self, view: str, context: dict[str, Any], status_code: int) -> Response:
        """Return the rendered response."""


def json_view_renderer(view: str, context: dict[str, Any], status_code: int) -> Response:
    """Default renderer: hand the view name and context back as JSON."""
    return JSONResponse(status_code=status_code, content={"view": view, **context})


class ResponseChannel(Protocol):
    """How a signup request reports its outcome."""

    def form(self, request: Request, view: str | None, view_key: str, action: str) -> Response:
        """Respond to a GET for a form page."""

    def success(
        self,
        request: Request,
        view: str | None,
        view_key: str,
        redirect: str | None = None,
    ) -> Response:
        """Respond to a successful operation."""

    def failure(
        self,
        request: Request,
        error: SignupError,
        view: str | None,
        view_key: str,
    ) -> Response:
        """Respond to a reported (non-fatal) error."""

    def unknown_account(self, request: Request, error: SignupError, signup_url: str) -> Response:
        """Respond to a resend for an account that does not exist."""


class RestChannel:
    """JSON responses: ``{"error": ...}`` on failure, 204 on success."""

    def form(self, request: Request, view: str | None, view_key: str, action: str) -> Response:
        return JSONResponse({"action": action})

    def success(
        self,
        request: Request,
        view: str | None,
        view_key: str,
        redirect: str | None = None,
    ) -> Response:
        return Response(status_code=204)

    def failure(
        self,
        request: Request,
        error: SignupError,
        view: str | None,
        view_key: str,
    ) -> Response:
        return JSONResponse(
            status_code=error.status_code,
            content={"error": error.detail, "code": error.code},
        )

    def unknown_account(self, request: Request, error: SignupError, signup_url: str) -> Response:
        return self.failure(request, error, None, "resend")


class HostChannel:
    """Leave responses to the host: errors propagate, successes are empty 204s.

    Hosts react to outcomes through flow observers and to errors through
    their exception handlers.
    """

    def form(self, request: Request, view: str | None, view_key: str, action: str) -> Response:
        return Response(status_code=204)

    def success(
        self,
        request: Request,
        view: str | None,
        view_key: str,
        redirect: str | None = None,
    ) -> Response:
        return Response(status_code=204)

    def failure(
        self,
        request: Request,
        error: SignupError,
        view: str | None,
        view_key: str,
    ) -> Response:
        raise error

    def unknown_account(self, request: Request, error: SignupError, signup_url: str) -> Response:
        raise error


class ViewChannel:
    """Rendered views and browser redirects."""

    def __init__(self, renderer: ViewRenderer, settings: SignupSettings) -> None:
        self._renderer = renderer
        self._settings = settings

    def form(self, request: Request, view: str | None, view_key: str, action: str) -> Response:
        return self._render(request, view, view_key, status_code=200, action=action)

    def success(
        self,
        request: Request,
        view: str | None,
        view_key: str,
        redirect: str | None = None,
    ) -> Response:
        if redirect:
            return RedirectResponse(redirect, status_code=303)
        return self._render(request, view, view_key, status_code=200)

    def failure(
        self,
        request: Request,
        error: SignupError,
        view: str | None,
        view_key: str,
    ) -> Response:
        return self._render(
            request,
            view,
            view_key,
            status_code=error.status_code,
            error=error.detail,
        )

    def unknown_account(self, request: Request, error: SignupError, signup_url: str) -> Response:
        return RedirectResponse(signup_url, status_code=303)

    def _render(
        self,
        request: Request,
        view: str | None,
        view_key: str,
        status_code: int,
        error: str | None = None,
        **extra: Any,
    ) -> Response:
        """Build the template context and hand it to the renderer."""
        if not view:
            return HTMLResponse(
                _MISSING_VIEW_HTML.format(name=escape(f"signup.views.{view_key}")),
                status_code=404,
            )
        context: dict[str, Any] = {"title": self._settings.title, "result": True, **extra}
        query_error = request.query_params.get("error")
        if error is not None:
            context["error"] = error
        elif query_error:
            context["error"] = query_error
        return self._renderer(view, context, status_code)
