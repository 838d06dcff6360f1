"""Shared fixtures: settings, in-memory store and capturing notifiers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from signup.config import Settings
from signup.models.user import User
from signup.notifiers.logging import CapturingNotifier
from signup.stores.memory import InMemoryUserStore


def build_settings(**signup_overrides: Any) -> Settings:
    """Build test settings without touching the environment database."""
    return Settings(
        app={"environment": "development", "log_level": "WARNING"},
        database={"url": "sqlite+aiosqlite:///:memory:"},
        signup=signup_overrides,
        sms={"enabled": True, "default_region": "US"},
    )


def make_user(**fields: Any) -> User:
    """Create a detached user with every flag explicitly set."""
    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": uuid4(),
        "name": None,
        "email": "user@example.com",
        "password_hash": "secret-password",
        "account_invalid": False,
        "account_locked": False,
        "email_verified": False,
        "email_verification_timestamp": None,
        "signup_token": None,
        "signup_token_expires": None,
        "phone_number": None,
        "phone_verified": None,
        "created_at": now,
        "updated_at": now,
    }
    values.update(fields)
    return User(**values)


@pytest.fixture
def store() -> InMemoryUserStore:
    """Empty in-memory user store."""
    return InMemoryUserStore()


@pytest.fixture
def email_notifier() -> CapturingNotifier:
    """Email notifier recording sent codes."""
    return CapturingNotifier()


@pytest.fixture
def sms_notifier() -> CapturingNotifier:
    """SMS notifier recording sent codes."""
    return CapturingNotifier()


@pytest.fixture
def add_user(store: InMemoryUserStore) -> Callable[..., User]:
    """Insert a user directly into the in-memory store."""

    def _add(**fields: Any) -> User:
        user = make_user(**fields)
        store.users[str(user.id)] = user
        return user

    return _add


@pytest.fixture
def past() -> datetime:
    """A timestamp one minute in the past."""
    return datetime.now(UTC) - timedelta(minutes=1)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build settings with signup overrides."""
    return build_settings


@pytest.fixture
def user_factory() -> Callable[..., User]:
    """Build detached users not stored anywhere."""
    return make_user
