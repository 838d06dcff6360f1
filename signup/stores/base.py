"""User storage adapter contract."""

from __future__ import annotations

from typing import Literal, Protocol

from signup.models.user import User

LookupField = Literal["name", "email", "signup_token"]
LOOKUP_FIELDS: frozenset[str] = frozenset({"name", "email", "signup_token"})


class UserStore(Protocol):
    """Persistence interface the signup flow depends on.

    Implementations raise ``StorageError`` when the backend fails.
    """

    async def find(self, field: LookupField, value: str) -> User | None:
        """Return the user whose ``field`` equals ``value``."""

    async def save(self, name: str | None, email: str | None, password: str) -> User:
        """Persist a new unverified user."""

    async def update(self, user: User) -> User:
        """Persist changes made to an existing user."""
