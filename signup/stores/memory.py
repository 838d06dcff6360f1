"""In-process user store for development and tests."""

from __future__ import annotations

from uuid import uuid4

from signup.core.durations import utcnow
from signup.models.user import User
from signup.services.errors import StorageError
from signup.stores.base import LOOKUP_FIELDS, LookupField


class InMemoryUserStore:
    """Dictionary-backed store keyed by user id."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.calls: list[tuple[str, object]] = []

    async def find(self, field: LookupField, value: str) -> User | None:
        """Return the first user matching ``field == value``; email is case-insensitive."""
        self.calls.append(("find", (field, value)))
        if field not in LOOKUP_FIELDS:
            raise StorageError(f"Unsupported lookup field: {field}.")
        for user in self.users.values():
            stored = getattr(user, field)
            if field == "email" and stored is not None:
                if stored.lower() == value.lower():
                    return user
            elif stored == value:
                return user
        return None

    async def save(self, name: str | None, email: str | None, password: str) -> User:
        """Store a new unverified user; the password is kept as given."""
        self.calls.append(("save", (name, email)))
        now = utcnow()
        user = User(
            id=uuid4(),
            name=name,
            email=email,
            password_hash=password,
            account_invalid=False,
            account_locked=False,
            email_verified=False,
            signup_token=None,
            signup_token_expires=None,
            phone_number=None,
            phone_verified=None,
            created_at=now,
            updated_at=now,
        )
        self.users[str(user.id)] = user
        return user

    async def update(self, user: User) -> User:
        """Replace the stored record for ``user.id``."""
        self.calls.append(("update", user.id))
        if str(user.id) not in self.users:
            raise StorageError("User not found in store.")
        user.updated_at = utcnow()
        self.users[str(user.id)] = user
        return user
