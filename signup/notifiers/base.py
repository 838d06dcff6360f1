"""Verification code delivery contract."""

from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    """Deliver a verification code to an email address or phone number.

    Implementations raise ``TransportError`` when delivery fails.
    """

    async def send(self, destination: str, code: str) -> None:
        """Deliver ``code`` to ``destination``."""
