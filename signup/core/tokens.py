"""Signup token generation and format checks."""

from __future__ import annotations

import re
import secrets


class TokenSource:
    """Generate short URL-safe verification tokens."""

    _NBYTES = 12
    _PATTERN = re.compile(r"^[A-Za-z0-9_-]{16}$")

    def generate(self) -> str:
        """Return a new random token (16 URL-safe characters)."""
        return secrets.token_urlsafe(self._NBYTES)

    def is_valid(self, token: str | None) -> bool:
        """Return True when ``token`` has the generated format."""
        if not token:
            return False
        return self._PATTERN.fullmatch(token) is not None
