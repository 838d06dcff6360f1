"""Integration tests for the signup routes over HTTP."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from signup.main import create_app
from signup.middleware.metrics import MetricsRegistry


class _FailingNotifier:
    """Notifier whose transport always fails."""

    async def send(self, destination: str, code: str) -> None:
        raise OSError("connection refused")


async def _client(app) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture
def registry() -> MetricsRegistry:
    """Fresh metrics registry per test."""
    return MetricsRegistry()


@pytest.fixture
def rest_app(settings_factory, store, email_notifier, sms_notifier, registry):
    """Application in REST mode with in-memory collaborators."""
    return create_app(
        settings=settings_factory(rest_enabled=True, rest_route="api"),
        store=store,
        email_notifier=email_notifier,
        sms_notifier=sms_notifier,
        metrics_registry=registry,
    )


@pytest.fixture
def view_app(settings_factory, store, email_notifier, registry):
    """Application in view mode with the default JSON renderer."""
    return create_app(
        settings=settings_factory(use_login=True, login_route="/login"),
        store=store,
        email_notifier=email_notifier,
        metrics_registry=registry,
    )


@pytest_asyncio.fixture
async def rest_client(rest_app) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to the REST-mode app."""
    async for client in _client(rest_app):
        yield client


@pytest_asyncio.fixture
async def view_client(view_app) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to the view-mode app."""
    async for client in _client(view_app):
        yield client


@pytest.mark.asyncio
async def test_rest_signup_verify_happy_path(rest_client, store, email_notifier, registry) -> None:
    """Signup, verify, then re-verify with the consumed token."""
    form = await rest_client.get("/api/signup", params={"redirect": "/home"})
    assert form.status_code == 200
    assert form.json() == {"action": "/api/signup?redirect=%2Fhome"}

    signup = await rest_client.post(
        "/api/signup",
        json={"name": "Jane Doe", "email": "jane@example.com", "password": "Password123!"},
    )
    assert signup.status_code == 204
    assert signup.headers["cache-control"] == "no-store"
    destination, token = email_notifier.sent[0]
    assert destination == "jane@example.com"

    verify = await rest_client.get(f"/api/signup/{token}")
    assert verify.status_code == 204
    (user,) = store.users.values()
    assert user.email_verified is True
    assert user.signup_token is None

    again = await rest_client.get(f"/api/signup/{token}")
    assert again.status_code == 404
    assert again.json() == {
        "error": "Verification link is invalid or has expired.",
        "code": "invalid_verify_token",
    }
    assert registry.signup_event_count("verify", "verified") == 1
    assert registry.signup_event_count("verify", "NotFoundError") == 1


@pytest.mark.asyncio
async def test_rest_signup_validation_error(rest_client, store) -> None:
    """Bad input returns a JSON error without touching the store."""
    response = await rest_client.post(
        "/api/signup",
        json={"email": "not-an-email", "password": "Password123!"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "You have entered an invalid email address!",
        "code": "invalid_input",
    }
    assert store.calls == []


@pytest.mark.asyncio
async def test_rest_signup_rejects_non_object_payload(rest_client) -> None:
    """JSON bodies must be objects."""
    response = await rest_client.post("/api/signup", json=["jane@example.com"])

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request payload."


@pytest.mark.asyncio
async def test_rest_signup_conflict(rest_client, add_user) -> None:
    """Duplicate email is a 409 in REST mode."""
    add_user(email="jane@example.com")

    response = await rest_client.post(
        "/api/signup",
        json={"email": "jane@example.com", "password": "Password123!"},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "already_registered"


@pytest.mark.asyncio
async def test_rest_verify_expired_token(rest_client, add_user, past) -> None:
    """Expired tokens return 410 and are cleared."""
    user = add_user(signup_token="AAAAAAAAAAAAAAAA", signup_token_expires=past)

    response = await rest_client.get("/api/signup/AAAAAAAAAAAAAAAA")

    assert response.status_code == 410
    assert response.json()["code"] == "token_expired"
    assert user.signup_token is None
    assert user.email_verified is False


@pytest.mark.asyncio
async def test_rest_resend_unknown_email_is_not_found(rest_client, store) -> None:
    """Unknown accounts are reported, not created."""
    response = await rest_client.post(
        "/api/signup/resend-verification",
        json={"email": "nobody@example.com"},
    )

    assert response.status_code == 404
    assert store.users == {}


@pytest.mark.asyncio
async def test_rest_resend_with_phone(rest_client, add_user, sms_notifier) -> None:
    """Verified users can start phone verification."""
    user = add_user(email="jane@example.com", email_verified=True)

    response = await rest_client.post(
        "/api/signup/resend-verification",
        json={"email": "jane@example.com", "phone": "(650) 253-0000"},
    )

    assert response.status_code == 204
    assert sms_notifier.sent == [("16502530000", user.signup_token)]
    assert user.phone_verified is False


@pytest.mark.asyncio
async def test_view_signup_form_post_renders_signed_up(view_client, email_notifier) -> None:
    """Form-encoded signup renders the signed-up view."""
    response = await view_client.post(
        "/signup",
        data={"email": "jane@example.com", "password": "Password123!", "name": ""},
    )

    assert response.status_code == 200
    assert response.json() == {"view": "signed_up", "title": "Signup", "result": True}
    assert len(email_notifier.sent) == 1


@pytest.mark.asyncio
async def test_view_signup_error_renders_form_with_message(view_client) -> None:
    """Validation errors re-render the signup view with the message."""
    response = await view_client.post("/signup", data={"email": "jane@example.com"})

    assert response.status_code == 400
    body = response.json()
    assert body["view"] == "signup"
    assert body["error"] == "A password is required!"


@pytest.mark.asyncio
async def test_view_conflict_redirects_to_login(view_client, add_user) -> None:
    """With use_login enabled, duplicates are sent to the login route."""
    add_user(email="jane@example.com")

    response = await view_client.post(
        "/signup",
        data={"email": "jane@example.com", "password": "Password123!"},
    )

    assert response.status_code == 307
    assert response.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_view_deactivated_account_is_not_redirected(view_client, add_user) -> None:
    """Deactivated accounts get the error view, not the login redirect."""
    add_user(email="jane@example.com", account_invalid=True)

    response = await view_client.post(
        "/signup",
        data={"email": "jane@example.com", "password": "Password123!"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == 'The email "jane@example.com" has been deactivated'


@pytest.mark.asyncio
async def test_view_resend_unknown_email_redirects_to_signup(view_client, store) -> None:
    """Unknown resend requests are redirected to the signup form."""
    response = await view_client.post(
        "/signup/resend-verification",
        data={"email": "nobody@example.com"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/signup"
    assert store.users == {}


@pytest.mark.asyncio
async def test_view_resend_form_is_not_treated_as_token(view_client, store) -> None:
    """The resend path is matched before the token path."""
    response = await view_client.get("/signup/resend-verification")

    assert response.status_code == 200
    assert response.json()["view"] == "resend"
    assert store.calls == []


@pytest.mark.asyncio
async def test_view_verify_token_without_expiry_renders_link_expired(
    view_client, add_user
) -> None:
    """A token with no expiry counts as expired."""
    add_user(signup_token="BBBBBBBBBBBBBBBB", signup_token_expires=None)

    expired = await view_client.get("/signup/BBBBBBBBBBBBBBBB")

    assert expired.status_code == 410
    assert expired.json()["view"] == "link_expired"


@pytest.mark.asyncio
async def test_view_verify_redirects_to_local_target(view_client, email_notifier) -> None:
    """A local ?redirect= target replaces the verified view."""
    await view_client.post(
        "/signup",
        data={"email": "jane@example.com", "password": "Password123!"},
    )
    token = email_notifier.sent[0][1]

    response = await view_client.get(f"/signup/{token}", params={"redirect": "/home"})

    assert response.status_code == 303
    assert response.headers["location"] == "/home"


@pytest.mark.asyncio
async def test_view_verify_ignores_external_redirect(view_client, email_notifier) -> None:
    """Only local redirect targets are honoured."""
    await view_client.post(
        "/signup",
        data={"email": "jane@example.com", "password": "Password123!"},
    )
    token = email_notifier.sent[0][1]

    response = await view_client.get(
        f"/signup/{token}", params={"redirect": "https://evil.example.com"}
    )

    assert response.status_code == 200
    assert response.json()["view"] == "verified"


@pytest.mark.asyncio
async def test_completion_routes_redirect(settings_factory, store, email_notifier) -> None:
    """Configured completion routes redirect after signup and verification."""
    app = create_app(
        settings=settings_factory(
            completion_route="/welcome",
            completion_resend_route="/dashboard",
        ),
        store=store,
        email_notifier=email_notifier,
        metrics_registry=MetricsRegistry(),
    )
    async for client in _client(app):
        signup = await client.post(
            "/signup",
            data={"email": "jane@example.com", "password": "Password123!"},
        )
        verify = await client.get(f"/signup/{email_notifier.sent[0][1]}")

    assert signup.status_code == 303
    assert signup.headers["location"] == "/welcome"
    assert verify.status_code == 303
    assert verify.headers["location"] == "/dashboard"


@pytest.mark.asyncio
async def test_notification_failure_reaches_host_error_layer(
    settings_factory, store
) -> None:
    """Transport failures are not reported by the channel but by the error handlers."""
    app = create_app(
        settings=settings_factory(rest_enabled=True),
        store=store,
        email_notifier=_FailingNotifier(),
        metrics_registry=MetricsRegistry(),
    )
    async for client in _client(app):
        response = await client.post(
            "/rest/signup",
            json={"email": "jane@example.com", "password": "Password123!"},
        )

    assert response.status_code == 502
    assert response.json() == {
        "detail": "Verification code could not be delivered.",
        "code": "notification_failed",
    }
    (user,) = store.users.values()
    assert user.email_verified is False


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_signup_counters(rest_client) -> None:
    """The metrics endpoint includes flow outcome counters."""
    await rest_client.post(
        "/api/signup",
        json={"email": "jane@example.com", "password": "Password123!"},
    )

    response = await rest_client.get("/metrics")

    assert response.status_code == 200
    assert 'signup_flow_events_total{action="create",outcome="created"} 1' in response.text
    assert 'path="/api/signup"' in response.text


@pytest.mark.asyncio
async def test_pass_through_mode_defers_responses_to_host(
    settings_factory, store, email_notifier
) -> None:
    """Without response handling, errors reach the host handlers and successes are empty."""
    events = []
    app = create_app(
        settings=settings_factory(handle_response=False, use_login=True),
        store=store,
        email_notifier=email_notifier,
        observers=(events.append,),
        metrics_registry=MetricsRegistry(),
    )
    async for client in _client(app):
        form = await client.get("/signup")
        created = await client.post(
            "/signup",
            data={"email": "jane@example.com", "password": "Password123!"},
        )
        duplicate = await client.post(
            "/signup",
            data={"email": "jane@example.com", "password": "Password123!"},
        )
        unknown = await client.post(
            "/signup/resend-verification",
            data={"email": "nobody@example.com"},
        )

    assert form.status_code == 204
    assert created.status_code == 204
    assert duplicate.status_code == 409
    assert duplicate.json() == {
        "detail": 'The email account "jane@example.com" is already signed up.',
        "code": "already_registered",
    }
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "not_found"
    assert [(event.action, event.outcome) for event in events] == [
        ("create", "created"),
        ("create", "ConflictError"),
        ("resend", "NotFoundError"),
    ]
