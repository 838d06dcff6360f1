"""Unit tests for REST and view output channels."""

from __future__ import annotations

import json

import pytest

from starlette.requests import Request

from signup.config import SignupSettings
from signup.routers.channels import HostChannel, RestChannel, ViewChannel, json_view_renderer
from signup.services.errors import ConflictError, NotFoundError


def _request(query_string: bytes = b"") -> Request:
    """Build a bare GET request scope."""
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/signup",
            "query_string": query_string,
            "headers": [],
        }
    )


def test_rest_channel_reports_errors_as_json() -> None:
    """REST failures carry the error message and code."""
    response = RestChannel().failure(
        _request(), ConflictError("Already signed up."), "signup", "signup"
    )

    assert response.status_code == 409
    assert json.loads(response.body) == {"error": "Already signed up.", "code": "already_registered"}


def test_rest_channel_success_is_empty() -> None:
    """REST success is a bare 204."""
    response = RestChannel().success(_request(), "verified", "verified", redirect="/ignored")

    assert response.status_code == 204
    assert response.body == b""


def test_view_channel_renders_context_with_query_error() -> None:
    """The ?error= query parameter is surfaced when no error occurred."""
    channel = ViewChannel(json_view_renderer, SignupSettings(title="Join"))

    response = channel.form(_request(b"error=Try%20again"), "signup", "signup", "/signup")

    assert response.status_code == 200
    assert json.loads(response.body) == {
        "view": "signup",
        "title": "Join",
        "result": True,
        "action": "/signup",
        "error": "Try again",
    }


def test_view_channel_uses_custom_renderer_and_error_status() -> None:
    """Failures render the configured view with the error's status."""
    rendered: list[tuple[str, dict, int]] = []

    def renderer(view, context, status_code):
        rendered.append((view, context, status_code))
        return json_view_renderer(view, context, status_code)

    channel = ViewChannel(renderer, SignupSettings())
    channel.failure(_request(), NotFoundError("Gone."), "link_expired", "link_expired")

    assert rendered == [
        ("link_expired", {"title": "Signup", "result": True, "error": "Gone."}, 404)
    ]


def test_view_channel_without_view_returns_notice() -> None:
    """A missing view name yields a 404 HTML notice naming the setting."""
    channel = ViewChannel(json_view_renderer, SignupSettings())

    response = channel.success(_request(), None, "verified")

    assert response.status_code == 404
    assert b"signup.views.verified" in response.body


def test_view_channel_redirects() -> None:
    """Redirect targets win over views; unknown accounts go to signup."""
    channel = ViewChannel(json_view_renderer, SignupSettings())

    success = channel.success(_request(), "verified", "verified", redirect="/welcome")
    unknown = channel.unknown_account(_request(), NotFoundError("No account."), "/signup")

    assert success.status_code == 303
    assert success.headers["location"] == "/welcome"
    assert unknown.status_code == 303
    assert unknown.headers["location"] == "/signup"


def test_host_channel_raises_errors_for_the_host() -> None:
    """Pass-through failures propagate unchanged."""
    error = NotFoundError("No account is registered for that email.")

    with pytest.raises(NotFoundError) as exc_info:
        HostChannel().unknown_account(_request(), error, "/signup")

    assert exc_info.value is error


def test_host_channel_success_ignores_redirect() -> None:
    """Pass-through success leaves the body to the host."""
    response = HostChannel().success(_request(), "verified", "verified", redirect="/home")

    assert response.status_code == 204
